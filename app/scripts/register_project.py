"""
Register a project in the local mirror of the project registry. Run from project root:
  python -m app.scripts.register_project NAME [PRETTY_NAME]
Example:
  python -m app.scripts.register_project payments-api "Payments API"
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.models import Project


def main() -> int:
    parser = argparse.ArgumentParser(description="Register an Emberwatch project (scan target).")
    parser.add_argument("name", help="Unique project name (1-255 chars)")
    parser.add_argument("pretty_name", nargs="?", default=None, help="Display name; defaults to NAME")
    args = parser.parse_args()

    name = args.name.strip()
    if not name or len(name) > 255:
        print("Invalid project name length.", file=sys.stderr)
        return 1
    pretty_name = (args.pretty_name or name).strip()[:255]

    db = SessionLocal()
    try:
        existing = db.query(Project).filter(Project.name == name).first()
        if existing:
            print(f"Project '{name}' already exists (id={existing.id}).", file=sys.stderr)
            return 1
        project = Project(name=name, pretty_name=pretty_name)
        db.add(project)
        db.commit()
        print(f"Registered project '{name}' with id {project.id}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
