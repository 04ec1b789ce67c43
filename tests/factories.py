"""SQLite databases and row builders shared by the service tests."""

from datetime import datetime, timezone

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Burn, Finding, Project

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_session() -> Session:
    """Fresh in-memory database with every table created, on one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()


def make_file_engine(path: str) -> Engine:
    """
    Fresh SQLite file database with every table created. Each session gets its own
    connection, so sessions can run on separate threads; writers wait on the file lock.
    """
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    return engine


def add_project(session: Session, name: str = "payments-api") -> Project:
    project = Project(name=name, pretty_name=name.replace("-", " ").title())
    session.add(project)
    session.commit()
    return project


def add_finding(session: Session, project: Project, **fields: object) -> Finding:
    """Open finding with plausible defaults; override any column via kwargs."""
    values: dict[str, object] = {
        "severity": 2,
        "fingerprint": "9f2c1a",
        "scanner": "brakeman",
        "description": "SQL Injection",
        "detail": "Possible SQL injection near line 10",
        "file": "app/models/user.rb",
        "line": "10",
        "code": "User.where(\"name = #{params[:name]}\")",
        "status": "open",
    }
    values.update(fields)
    finding = Finding(project_id=project.id, **values)
    session.add(finding)
    session.commit()
    return finding


def add_burn(
    session: Session,
    project: Project,
    created_at: datetime,
    num_files: int = 10,
    num_lines: int = 1000,
) -> Burn:
    burn = Burn(project_id=project.id, created_at=created_at, num_files=num_files, num_lines=num_lines)
    session.add(burn)
    session.commit()
    return burn
