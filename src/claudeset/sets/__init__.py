"""Snapshot storage, save and load.

Layout:
    <sets_dir>/
    └── <name>/                # may be nested, e.g. team/backend
        ├── project/           # files relative to the current directory
        └── user/              # files relative to the home directory
"""
