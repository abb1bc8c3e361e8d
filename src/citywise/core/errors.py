"""Exceptions raised by the CityWise core."""


class CityWiseError(Exception):
    """Base class for CityWise errors."""


class RuleSetUnavailable(CityWiseError):
    """The requirement rules for a jurisdiction could not be loaded.

    Raised instead of returning an empty checklist: an empty list would read
    as "nothing required" to someone relying on it for permitting.
    """

    def __init__(self, jurisdiction: str, reason: str = "") -> None:
        self.jurisdiction = jurisdiction
        self.reason = reason
        msg = f"Requirement rules unavailable for jurisdiction {jurisdiction!r}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
