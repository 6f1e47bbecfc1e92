"""
Package entry point.

Allows running the application via:

    python -m semesterflow

This simply forwards execution to semesterflow.cli.main().
"""

from semesterflow.cli import main

if __name__ == "__main__":
    main()
