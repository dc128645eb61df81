#!/usr/bin/env python3
"""dav-contacts: personal contact server.  Run with:  python3 start.py [serve|list|…]"""
import sys
import os

script_dir = os.path.dirname(os.path.abspath(__file__))
src_dir    = os.path.join(script_dir, "src")

sys.path.insert(0, src_dir)
os.environ["PYTHONPATH"] = src_dir + os.pathsep + os.environ.get("PYTHONPATH", "")

# No arguments: start the server
if len(sys.argv) == 1:
    sys.argv.append("serve")

from dav_contacts.cli import app
app()
