from .hackathon_lifecycle import HackathonLifecycle, HackathonPhase, InvalidTransitionError

__all__ = ["HackathonLifecycle", "HackathonPhase", "InvalidTransitionError"]
