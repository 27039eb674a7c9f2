from jamroom.domains.presence.tracker import Presence, PresenceStatus, classify_presence

__all__ = ["Presence", "PresenceStatus", "classify_presence"]
