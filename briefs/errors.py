from __future__ import annotations


class BriefError(Exception):
    pass


class BriefNotFoundError(BriefError):
    def __init__(self, brief_id: str):
        super().__init__(f"Brief {brief_id} not found")
        self.brief_id = str(brief_id)


class BriefGenerationError(BriefError):
    pass
