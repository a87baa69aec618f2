"""
SQLAlchemy Database Models for the Climbing Coach

Provides persistent storage for:
- Climbers
- Assessment history (append-only; the most recent entry is current)
- Generated training programs with status and progress counters

The core never talks to these models directly. It sees the ``Storage``
protocol, with ``SqlStorage`` for a real database and ``InMemoryStorage`` for
tests and one-off CLI runs.
"""

import itertools
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, Field
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from climbcoach.errors import PersistenceError, ValidationError
from climbcoach.plan_schemas import TrainingProgram
from climbcoach.schemas import AssessmentResult

Base = declarative_base()

Entity = Union[AssessmentResult, TrainingProgram]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgramStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class ProgramProgress(BaseModel):
    """Mutable counters tracked for a saved program."""

    program_id: str
    status: ProgramStatus
    completed_sessions: int = Field(..., ge=0)
    total_sessions: int = Field(..., ge=0)
    progress_percentage: int = Field(..., ge=0, le=100)


def progress_percentage(completed_sessions: int, total_sessions: int) -> int:
    if total_sessions <= 0:
        return 0
    return min(100, round(completed_sessions * 100 / total_sessions))


# ============================================================================
# Models
# ============================================================================

class Climber(Base):
    """
    User account.

    Attributes:
        id: Primary key
        user_id: External identifier used across the API and CLI
        created_at: Account creation timestamp
    """

    __tablename__ = "climbers"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    assessments = relationship(
        "AssessmentRecord", back_populates="climber", cascade="all, delete-orphan"
    )
    programs = relationship(
        "TrainingProgramRecord", back_populates="climber", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Climber(user_id='{self.user_id}')>"


class AssessmentRecord(Base):
    """
    One scored assessment.

    Attributes:
        id: Primary key
        climber_id: Foreign key to climbers table
        predicted_grade: Grade predicted by the scorer
        composite_score: Weighted composite score
        confidence: high, medium or low
        result_data: Full AssessmentResult as JSON
        assessed_at: When the assessment was taken
    """

    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True)
    climber_id = Column(Integer, ForeignKey("climbers.id"), nullable=False, index=True)
    predicted_grade = Column(String, nullable=False)
    composite_score = Column(Float, nullable=False)
    confidence = Column(String, nullable=False)
    result_data = Column(JSON, nullable=False)
    assessed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    # Relationships
    climber = relationship("Climber", back_populates="assessments")

    def __repr__(self):
        return f"<AssessmentRecord(id={self.id}, grade='{self.predicted_grade}')>"


class TrainingProgramRecord(Base):
    """
    Saved training program with progress counters.

    Attributes:
        id: Primary key
        program_id: Program identifier (prog_<user>_<millis>)
        climber_id: Foreign key to climbers table
        program_type: quick, enhanced or optimized
        status: active, completed, paused or cancelled
        completed_sessions: Sessions the climber has logged
        total_sessions: Training sessions in the program
        progress_percentage: completed / total, 0-100
        requires_coach_review: Review gate outcome
        confidence: high, medium or low
        program_data: Full TrainingProgram as JSON
        created_at: When this program was generated
    """

    __tablename__ = "training_programs"

    id = Column(Integer, primary_key=True)
    program_id = Column(String, unique=True, nullable=False, index=True)
    climber_id = Column(Integer, ForeignKey("climbers.id"), nullable=False, index=True)
    program_type = Column(String, nullable=False)
    status = Column(String, default=ProgramStatus.ACTIVE.value, nullable=False, index=True)
    completed_sessions = Column(Integer, default=0, nullable=False)
    total_sessions = Column(Integer, nullable=False)
    progress_percentage = Column(Integer, default=0, nullable=False)
    requires_coach_review = Column(Boolean, nullable=False)
    confidence = Column(String, nullable=False)
    program_data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    climber = relationship("Climber", back_populates="programs")

    def progress(self) -> ProgramProgress:
        return ProgramProgress(
            program_id=self.program_id,
            status=ProgramStatus(self.status),
            completed_sessions=self.completed_sessions,
            total_sessions=self.total_sessions,
            progress_percentage=self.progress_percentage,
        )

    def __repr__(self):
        return f"<TrainingProgramRecord(program_id='{self.program_id}', status='{self.status}')>"


# ============================================================================
# Storage collaborators
# ============================================================================

class Storage(Protocol):
    """Persistence collaborator injected into the coach services."""

    def save(self, entity: Entity) -> str:
        ...

    def latest_assessment(self, user_id: str) -> Optional[AssessmentResult]:
        ...

    def get_program(self, program_id: str) -> Optional[TrainingProgram]:
        ...

    def update_progress(
        self,
        program_id: str,
        completed_sessions: int,
        status: Optional[ProgramStatus] = None,
    ) -> ProgramProgress:
        ...


def _next_status(
    completed_sessions: int, total_sessions: int, status: Optional[ProgramStatus]
) -> ProgramStatus:
    if completed_sessions < 0:
        raise ValidationError("completed_sessions cannot be negative", field="completed_sessions")
    if status is not None:
        return status
    if total_sessions and completed_sessions >= total_sessions:
        return ProgramStatus.COMPLETED
    return ProgramStatus.ACTIVE


class SqlStorage:
    """
    Storage backed by SQLAlchemy.

    Database errors are raised as ``PersistenceError`` after rolling back.
    """

    def __init__(self, database_url: str = "sqlite:///climbcoach.db"):
        self.session_factory = init_database(database_url)

    def save(self, entity: Entity) -> str:
        with self.session_factory() as db:
            try:
                if isinstance(entity, AssessmentResult):
                    record = self._assessment_record(db, entity)
                elif isinstance(entity, TrainingProgram):
                    record = self._program_record(db, entity)
                else:
                    raise TypeError(f"Cannot save {type(entity).__name__}")
                db.add(record)
                db.commit()
                if isinstance(entity, TrainingProgram):
                    return entity.id
                return str(record.id)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not save {type(entity).__name__}: {e}") from e

    def latest_assessment(self, user_id: str) -> Optional[AssessmentResult]:
        with self.session_factory() as db:
            try:
                record = (
                    db.query(AssessmentRecord)
                    .join(Climber)
                    .filter(Climber.user_id == user_id)
                    .order_by(AssessmentRecord.assessed_at.desc(), AssessmentRecord.id.desc())
                    .first()
                )
            except SQLAlchemyError as e:
                raise PersistenceError(f"Could not load assessment for {user_id}: {e}") from e
            if record is None:
                return None
            return AssessmentResult.model_validate(record.result_data)

    def get_program(self, program_id: str) -> Optional[TrainingProgram]:
        with self.session_factory() as db:
            record = self._find_program(db, program_id)
            if record is None:
                return None
            return TrainingProgram.model_validate(record.program_data)

    def update_progress(
        self,
        program_id: str,
        completed_sessions: int,
        status: Optional[ProgramStatus] = None,
    ) -> ProgramProgress:
        with self.session_factory() as db:
            record = self._find_program(db, program_id)
            if record is None:
                raise PersistenceError(f"Program not found: {program_id}")
            record.status = _next_status(completed_sessions, record.total_sessions, status).value
            record.completed_sessions = completed_sessions
            record.progress_percentage = progress_percentage(
                completed_sessions, record.total_sessions
            )
            try:
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Could not update program {program_id}: {e}") from e
            return record.progress()

    @staticmethod
    def _find_program(db: Session, program_id: str) -> Optional[TrainingProgramRecord]:
        try:
            return (
                db.query(TrainingProgramRecord)
                .filter(TrainingProgramRecord.program_id == program_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load program {program_id}: {e}") from e

    @staticmethod
    def _climber(db: Session, user_id: str) -> Climber:
        climber = db.query(Climber).filter(Climber.user_id == user_id).first()
        if climber is None:
            climber = Climber(user_id=user_id)
            db.add(climber)
        return climber

    def _assessment_record(self, db: Session, result: AssessmentResult) -> AssessmentRecord:
        return AssessmentRecord(
            climber=self._climber(db, result.user_id or "anonymous"),
            predicted_grade=result.predicted_grade,
            composite_score=result.composite_score,
            confidence=result.confidence.value,
            result_data=result.model_dump(mode="json"),
            assessed_at=result.assessed_at or _utcnow(),
        )

    def _program_record(self, db: Session, program: TrainingProgram) -> TrainingProgramRecord:
        return TrainingProgramRecord(
            program_id=program.id,
            climber=self._climber(db, program.user_id),
            program_type=program.program_type,
            status=ProgramStatus.ACTIVE.value,
            completed_sessions=0,
            total_sessions=program.total_sessions,
            progress_percentage=0,
            requires_coach_review=program.requires_coach_review,
            confidence=program.confidence,
            program_data=program.model_dump(mode="json"),
            created_at=program.created_at,
        )


class InMemoryStorage:
    """Storage kept in process memory. Nothing survives the process."""

    def __init__(self):
        self.assessments: Dict[str, List[AssessmentResult]] = {}
        self.programs: Dict[str, TrainingProgram] = {}
        self.progress: Dict[str, ProgramProgress] = {}
        self._ids = itertools.count(1)

    def save(self, entity: Entity) -> str:
        if isinstance(entity, AssessmentResult):
            self.assessments.setdefault(entity.user_id or "anonymous", []).append(entity)
            return str(next(self._ids))
        if isinstance(entity, TrainingProgram):
            self.programs[entity.id] = entity
            self.progress[entity.id] = ProgramProgress(
                program_id=entity.id,
                status=ProgramStatus.ACTIVE,
                completed_sessions=0,
                total_sessions=entity.total_sessions,
                progress_percentage=0,
            )
            return entity.id
        raise TypeError(f"Cannot save {type(entity).__name__}")

    def latest_assessment(self, user_id: str) -> Optional[AssessmentResult]:
        history = self.assessments.get(user_id)
        return history[-1] if history else None

    def get_program(self, program_id: str) -> Optional[TrainingProgram]:
        return self.programs.get(program_id)

    def update_progress(
        self,
        program_id: str,
        completed_sessions: int,
        status: Optional[ProgramStatus] = None,
    ) -> ProgramProgress:
        current = self.progress.get(program_id)
        if current is None:
            raise PersistenceError(f"Program not found: {program_id}")
        updated = ProgramProgress(
            program_id=program_id,
            status=_next_status(completed_sessions, current.total_sessions, status),
            completed_sessions=completed_sessions,
            total_sessions=current.total_sessions,
            progress_percentage=progress_percentage(completed_sessions, current.total_sessions),
        )
        self.progress[program_id] = updated
        return updated


# Database connection and session management

def get_engine(database_url: str = "sqlite:///climbcoach.db"):
    """
    Create SQLAlchemy engine.

    Args:
        database_url: Database connection string (default: SQLite file)

    Returns:
        SQLAlchemy Engine instance
    """
    return create_engine(database_url, echo=False)


def init_database(database_url: str = "sqlite:///climbcoach.db") -> sessionmaker:
    """
    Create all tables and return a session factory.

    Args:
        database_url: Database connection string

    Returns:
        Session factory (sessionmaker)
    """
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
