# -*- coding: utf-8 -*-

"""
Main entry point for launching pom-fixer from a source checkout.
"""

import sys

from pom_fixer.cli import main

if __name__ == '__main__':
    sys.exit(main())
