"""Package entry point for ``python -m ptv``.

Runs the command-line converter; see ptv.cli for the options.
"""

if __name__ == "__main__":
    from ptv.cli import main
    main()
