"""
Minimal logging for the font tools.

Standard output may carry generated source code, so everything is logged to stderr.
"""

import sys

# When False, INFO lines are dropped; warnings and errors always get through.
VERBOSE = True


def log(msg, header="INFO"):
    if header == "INFO" and not VERBOSE:
        return

    logstring = "[{}]: {}".format(header, msg)
    print(logstring, file=sys.stderr)
