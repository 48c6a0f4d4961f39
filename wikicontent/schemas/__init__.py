from wikicontent.schemas.schemas import (
    UserIdentity,
    ParserOptions,
    ParserOutput, SectionInfo,
    SecondaryDataUpdate, LinksUpdate,
    DiffOp, DiffResult,
)

__all__ = [
    "UserIdentity",
    "ParserOptions",
    "ParserOutput", "SectionInfo",
    "SecondaryDataUpdate", "LinksUpdate",
    "DiffOp", "DiffResult",
]
