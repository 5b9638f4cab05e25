"""In-process session registry.

Each session owns its own classifier and pools. Calls against one session are
serialised by the session's lock; different sessions never share state.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import threading
import time
import uuid

from al_selector.active_learning import ActiveLearning
from al_selector.model.svm import SVMClassifier
from al_selector.patch import Patch


@dataclass
class SessionHandle:
    session: ActiveLearning
    lock: threading.Lock = field(default_factory=threading.Lock)
    pending: Dict[str, List[Patch]] = field(default_factory=dict)  # handed out, awaiting labels; one list per id
    created_at: float = field(default_factory=time.time)
    rounds: int = 0

    @property
    def pending_count(self) -> int:
        return sum(len(v) for v in self.pending.values())


SESSIONS: Dict[str, SessionHandle] = {}
SESSIONS_LOCK = threading.Lock()

# Metrics
REQUEST_COUNT: Any = None
REQUEST_LATENCY: Any = None
ROUNDS_TOTAL: Any = None
PATCHES_SELECTED: Any = None


class SessionLimitReached(RuntimeError):
    pass


def create_session(max_sessions: int) -> str:
    with SESSIONS_LOCK:
        if len(SESSIONS) >= max_sessions:
            raise SessionLimitReached(f"Session limit of {max_sessions} reached")
        session_id = uuid.uuid4().hex
        SESSIONS[session_id] = SessionHandle(session=ActiveLearning(classifier=SVMClassifier()))
        return session_id


def get_session(session_id: str) -> Optional[SessionHandle]:
    with SESSIONS_LOCK:
        return SESSIONS.get(session_id)


def drop_session(session_id: str) -> bool:
    with SESSIONS_LOCK:
        return SESSIONS.pop(session_id, None) is not None
