#!/usr/bin/env python3
"""
Create the catalog tables and indexes (idempotent).
"""

from pathlib import Path

from script_base import ScriptBase, run_script

import db_utils

SCHEMA_PATH = Path(__file__).parent.parent / 'sql' / 'catalog_schema.sql'


def main():
    script = ScriptBase(
        name="init_schema",
        description="Apply sql/catalog_schema.sql to the configured database"
    )
    script.add_debug_arg()
    script.parse_args()

    script.print_header()

    if not db_utils.test_connection():
        return False

    script.logger.info(f"Applying {SCHEMA_PATH}")

    db_utils.apply_schema(SCHEMA_PATH.read_text())

    script.logger.info("Schema applied")
    return True


if __name__ == "__main__":
    run_script(main)
