#!/usr/bin/env python3
"""
Entry point for running the orgchart web application.

`python run.py tree` prints the hierarchy from the configured directory instead.
"""

import os
import sys
import uvicorn


def print_tree():
    from orgchart.services.hierarchy import build_forest
    from orgchart.services.source import get_directory
    from orgchart.services.tree_renderer import format_forest_text

    forest = build_forest(get_directory().fetch_records())
    print(format_forest_text(forest))


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "tree":
        print_tree()
    else:
        uvicorn.run(
            "orgchart.web.app:app",
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            reload=False
        )
