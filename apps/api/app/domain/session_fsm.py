"""Session lifecycle transition rules."""

from app.schemas.session import SessionPhase, SessionState, Subject

_INITIAL_STATE = SessionState(subject=None, loading=True)
_SIGNED_OUT_STATE = SessionState(subject=None, loading=False)


def initial_state() -> SessionState:
    """State published on mount, before the provider reports anything."""
    return _INITIAL_STATE


def state_for_notification(subject: Subject | None) -> SessionState:
    """Resolve a provider notification into its published state.

    Every notification leaves INITIALIZING; AUTHENTICATED and UNAUTHENTICATED
    are re-entered on each subsequent notification, including repeats.
    """
    if subject is None:
        return _SIGNED_OUT_STATE
    return SessionState(subject=subject, loading=False)


def settled_state(current: SessionState) -> SessionState:
    """State after the settle timeout elapses; only INITIALIZING is affected."""
    if current.phase is SessionPhase.INITIALIZING:
        return _SIGNED_OUT_STATE
    return current
