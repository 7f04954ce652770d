"""
CLI entry point for the infra-coverage command.
"""
from infra_coverage.runner import main

# Re-export main for the console_scripts entry point
__all__ = ['main']

if __name__ == '__main__':
    main()
