"""
Database schema and connection management.

Uses SQLite with SQLAlchemy to keep the results of a matching run
queryable: one row per score-matrix edge and one per IdP classification.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping

from sqlalchemy import create_engine, Column, String, Integer, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker

from .matching.report import MatchReport

Base = declarative_base()


class ScoreEdge(Base):
    """Weighted edge of a score matrix."""

    __tablename__ = "score_edges"

    matrix = Column(String, primary_key=True)  # name, hostname, crosswalk, combined
    entity_id = Column(String, primary_key=True)
    org_id = Column(String, primary_key=True)
    weight = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class Classification(Base):
    """Outcome of classifying one IdP in one view."""

    __tablename__ = "classifications"

    view = Column(String, primary_key=True)  # name, hostname, crosswalk, combined, scores
    entity_id = Column(String, primary_key=True)
    status = Column(String, nullable=False)  # unique, ambiguous, nomatch
    org_ids = Column(String, nullable=False, default="")  # space separated
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()


def _edge_rows(matrices: Mapping[str, Dict[str, Dict[str, int]]], now: datetime):
    for matrix_name, by_idp in matrices.items():
        for entity_id, orgs in by_idp.items():
            for org_id, weight in orgs.items():
                yield ScoreEdge(
                    matrix=matrix_name,
                    entity_id=entity_id,
                    org_id=org_id,
                    weight=weight,
                    created_at=now,
                )


def _classification_rows(report: MatchReport, now: datetime):
    for view, results in report.classifications.items():
        for entity_id, result in sorted(results.items()):
            yield Classification(
                view=view,
                entity_id=entity_id,
                status=result.status.value,
                org_ids=" ".join(sorted(result.org_ids)),
                created_at=now,
            )


def _replace_edges(session, matrices: Mapping[str, Dict[str, Dict[str, int]]], now: datetime) -> int:
    session.query(ScoreEdge).filter(ScoreEdge.matrix.in_(list(matrices))).delete(
        synchronize_session=False
    )
    rows = list(_edge_rows(matrices, now))
    session.add_all(rows)
    return len(rows)


def save_matrices(matrices: Mapping[str, Dict[str, Dict[str, int]]], db_path: Path) -> int:
    """
    Replace the stored edges of the given matrices.

    Args:
        matrices: matrix name -> {entityID -> {org id -> weight}}
        db_path: Path to SQLite database file

    Returns:
        Number of edges written
    """
    init_database(db_path)
    session = get_session(db_path)
    try:
        written = _replace_edges(session, matrices, datetime.now())
        session.commit()
        return written
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def save_report(report: MatchReport, db_path: Path) -> int:
    """
    Store all matrices and classifications of a run in one transaction.

    Previous rows are replaced; on failure the database keeps the previous
    run untouched.

    Returns:
        Number of edges written
    """
    init_database(db_path)
    session = get_session(db_path)
    now = datetime.now()
    try:
        edges = _replace_edges(session, report.matrix_dicts(), now)
        session.query(Classification).delete(synchronize_session=False)
        session.add_all(list(_classification_rows(report, now)))
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    return edges
