"""Probe the local health server: ``python -m healthjson``."""

from healthjson.client import client_main

if __name__ == "__main__":
    client_main()
