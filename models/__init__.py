from .problem import Problem, SubmissionEvent, NewProblem, CodeEntry, NoteUpdate, Difficulty, Origin
from .settings import Settings, Snapshot, SNAPSHOT_VERSION
from .results import IngestOutcome, IngestResult, CommandResult, Stats

__all__ = [
    'Problem', 'SubmissionEvent', 'NewProblem', 'CodeEntry', 'NoteUpdate', 'Difficulty', 'Origin',
    'Settings', 'Snapshot', 'SNAPSHOT_VERSION',
    'IngestOutcome', 'IngestResult', 'CommandResult', 'Stats',
]
