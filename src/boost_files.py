"""Boosts all particles of the given event files to the HALHF lab frame.
Every input file.root is written to file-boosted.root next to it.

Usage:
    boost_files.py <input-file>...

The files are processed in the given order, the first failing file stops the processing.
"""

import sys
import docopt
from edm4hep_boost import process_input_files


def main(argv=None) -> int:
    try:
        arguments = docopt.docopt(__doc__, argv=argv)
    except docopt.DocoptExit as e:
        print(e)
        return 1
    try:
        process_input_files(arguments["<input-file>"])
    except OSError as e:
        print(f"Boosting failed: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
