#!/usr/bin/env python
import sys
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory

BACKEND_DIR = Path(__file__).parent.parent


def load_script_directory() -> ScriptDirectory:
    alembic_ini = BACKEND_DIR / "alembic.ini"
    if not alembic_ini.exists():
        print("Error: alembic.ini not found", file=sys.stderr)
        sys.exit(1)

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    return ScriptDirectory.from_config(config)


def check_migrations() -> int:
    """Check the users schema migrations form one linear chain."""
    script = load_script_directory()
    revisions = list(script.walk_revisions())
    revision_ids = [rev.revision for rev in revisions]

    if len(revision_ids) != len(set(revision_ids)):
        print("Error: Duplicate revision IDs found", file=sys.stderr)
        return 1

    for rev in revisions:
        if rev.down_revision and rev.down_revision not in revision_ids:
            print(f"Error: Missing dependency for revision {rev.revision}", file=sys.stderr)
            return 1

    heads = script.get_heads()
    if len(heads) != 1:
        print(f"Error: Expected a single head, found {heads}", file=sys.stderr)
        return 1

    print(f"Migration check passed! ({len(revisions)} revisions, head {heads[0]})")
    return 0


if __name__ == "__main__":
    sys.exit(check_migrations())
