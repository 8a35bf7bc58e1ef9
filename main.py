#!/usr/bin/env python3
"""
GitHub Issue Statistics

Main entry point for the issue statistics application.
"""

from issue_stats.cli import main

if __name__ == '__main__':
    main()
