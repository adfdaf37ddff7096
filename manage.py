#!/usr/bin/env python
import sys


def main():
    from config import use_settings_for_env

    use_settings_for_env()

    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
