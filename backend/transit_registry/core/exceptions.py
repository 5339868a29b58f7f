"""Errors raised by the association engine"""


class RegistryError(Exception):
    """Base class for association engine errors"""
    pass


class NoRegionFound(RegistryError):
    """Raised when a region merge finds no candidate region near the agency"""

    def __init__(self, agency_id: int | None):
        self.agency_id = agency_id
        super().__init__(f"No region found within the proximity threshold of agency {agency_id}")


class AmbiguousGeometry(RegistryError):
    """Raised when an agency's contributing feeds carry different SRIDs"""

    def __init__(self, agency_id: int | None, srids: set[int]):
        self.agency_id = agency_id
        self.srids = srids
        super().__init__(
            f"Feeds of agency {agency_id} use mixed SRIDs {sorted(srids)}; refusing to union them"
        )


class SupersessionCycle(RegistryError):
    """Raised when marking a feed as superseded would create a cycle"""

    def __init__(self, feed_id: int | None, replacement_id: int | None):
        self.feed_id = feed_id
        self.replacement_id = replacement_id
        super().__init__(
            f"Feed {replacement_id} cannot supersede feed {feed_id}: the supersession chain would loop"
        )


class UnsavedEntityError(RegistryError):
    """Raised when a relation is requested on an entity that has not been persisted"""
    pass
