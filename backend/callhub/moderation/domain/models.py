"""Domain models for submissions, published records and user-owned state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union

from callhub.moderation.domain.exceptions import AuthError, ForbiddenError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Collection(str, Enum):
    """Record collections held by the content store."""

    ARTISTS = "artists"
    SONGS = "songs"
    CHANT_TEMPLATES = "chant_templates"
    CALL_CHARTS = "call_charts"
    SECTIONS = "call_sections"
    BULLETIN_POSTS = "bulletin_posts"
    SUBMISSIONS = "submissions"
    REPORTS = "reports"
    REPLIES = "replies"
    BOOKMARKS = "bookmarks"
    PROFILES = "profiles"


class SubmissionKind(str, Enum):
    ARTIST = "artist"
    SONG = "song"
    CHANT = "chant"
    INQUIRY = "inquiry"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REPLIED = "replied"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REPLY = "reply"


class InquiryCategory(str, Enum):
    FEATURE_REQUEST = "feature-request"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "InquiryCategory":
        if value in (None, ""):
            return cls.OTHER
        if value == "request":
            return cls.FEATURE_REQUEST
        return cls(value)


class BulletinStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


class BoardCategory(str, Enum):
    GROUND = "ground"
    UNDERGROUND = "underground"
    MENS_UNDERGROUND = "mens_underground"
    OTHER = "other"


class TargetType(str, Enum):
    """Published content a report or bookmark can point at."""

    CHANT = "chant"
    CALL_CHART = "call_chart"

    @classmethod
    def parse(cls, value: str) -> "TargetType":
        if value == "mix":
            return cls.CHANT
        return cls(value)


class ReportCategory(str, Enum):
    CORRECTION = "correction"
    ABUSE_REPORT = "abuse-report"

    @classmethod
    def parse(cls, value: str) -> "ReportCategory":
        if value == "report":
            return cls.ABUSE_REPORT
        return cls(value)


class ReportReason(str, Enum):
    SPAM = "spam"
    ABUSE = "abuse"
    COPYRIGHT = "copyright"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    IGNORED = "ignored"

    @classmethod
    def parse(cls, value: str | None) -> "ReportStatus":
        # legacy rows carry a null status and count as pending
        if value is None:
            return cls.PENDING
        return cls(value)


class BookmarkCategory(str, Enum):
    PRACTICE = "practice"
    FAVORITE = "favorite"


@dataclass(slots=True, frozen=True)
class Actor:
    """The caller as reported by the identity collaborator."""

    id: str
    role: str = "user"

    @property
    def is_operator(self) -> bool:
        return self.role == "operator"


def require_actor(actor: Optional[Actor]) -> Actor:
    if actor is None or not actor.id:
        raise AuthError()
    return actor


def require_operator(actor: Optional[Actor]) -> Actor:
    actor = require_actor(actor)
    if not actor.is_operator:
        raise ForbiddenError()
    return actor


# -- submissions -------------------------------------------------------------


@dataclass
class _SubmissionBase:
    id: str
    status: SubmissionStatus
    owner_id: Optional[str]
    created_at: datetime

    kind: ClassVar[SubmissionKind]
    # attribute name -> store column for the kind-specific payload
    columns: ClassVar[Mapping[str, str]] = {}

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "status": self.status.value,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
        }
        for attr, column in self.columns.items():
            record[column] = getattr(self, attr)
        return record

    @classmethod
    def _from_record(cls, record: Mapping[str, Any]):
        payload = {attr: record.get(column) for attr, column in cls.columns.items()}
        return cls(
            id=str(record["id"]),
            status=SubmissionStatus(record.get("status") or SubmissionStatus.PENDING.value),
            owner_id=str(record["owner_id"]) if record.get("owner_id") else None,
            created_at=record.get("created_at") or utcnow(),
            **payload,
        )


@dataclass
class ArtistSubmission(_SubmissionBase):
    name: str = ""
    reading: Optional[str] = None
    profile_url: Optional[str] = None

    kind: ClassVar[SubmissionKind] = SubmissionKind.ARTIST
    columns: ClassVar[Mapping[str, str]] = {
        "name": "artist_name",
        "reading": "artist_reading",
        "profile_url": "artist_profile_url",
    }


@dataclass
class SongSubmission(_SubmissionBase):
    title: str = ""
    related_artist_id: Optional[str] = None
    youtube_url: Optional[str] = None
    apple_music_url: Optional[str] = None
    amazon_music_url: Optional[str] = None

    kind: ClassVar[SubmissionKind] = SubmissionKind.SONG
    columns: ClassVar[Mapping[str, str]] = {
        "title": "song_title",
        "related_artist_id": "related_artist_id",
        "youtube_url": "youtube_url",
        "apple_music_url": "apple_music_url",
        "amazon_music_url": "amazon_music_url",
    }


@dataclass
class ChantSubmission(_SubmissionBase):
    title: str = ""
    content: str = ""
    measures: Optional[int] = None
    bars: Optional[str] = None
    reference_url: Optional[str] = None
    remarks: Optional[str] = None
    song_id: Optional[str] = None

    kind: ClassVar[SubmissionKind] = SubmissionKind.CHANT
    columns: ClassVar[Mapping[str, str]] = {
        "title": "chant_title",
        "content": "chant_content",
        "measures": "measures",
        "bars": "chant_bars",
        "reference_url": "reference_url",
        "remarks": "remarks",
        "song_id": "song_id",
    }

    def bar_count(self) -> Optional[int]:
        """Numeric measures win over the legacy free-text bars field."""
        for candidate in (self.measures, self.bars):
            if candidate is None or candidate == "":
                continue
            try:
                return int(str(candidate).strip())
            except ValueError:
                continue
        return None


@dataclass
class InquirySubmission(_SubmissionBase):
    content: str = ""
    category: InquiryCategory = InquiryCategory.OTHER

    kind: ClassVar[SubmissionKind] = SubmissionKind.INQUIRY
    columns: ClassVar[Mapping[str, str]] = {
        "content": "content",
        "category": "category",
    }

    def to_record(self) -> dict[str, Any]:
        record = _SubmissionBase.to_record(self)
        record["category"] = self.category.value
        return record

    @classmethod
    def _from_record(cls, record: Mapping[str, Any]):
        submission = super()._from_record(record)
        submission.category = InquiryCategory.parse(record.get("category"))
        return submission


Submission = Union[ArtistSubmission, SongSubmission, ChantSubmission, InquirySubmission]

SUBMISSION_TYPES: Mapping[SubmissionKind, type] = {
    SubmissionKind.ARTIST: ArtistSubmission,
    SubmissionKind.SONG: SongSubmission,
    SubmissionKind.CHANT: ChantSubmission,
    SubmissionKind.INQUIRY: InquirySubmission,
}


def submission_from_record(record: Mapping[str, Any]) -> Submission:
    kind = SubmissionKind(record["kind"])
    return SUBMISSION_TYPES[kind]._from_record(record)


# -- published records --------------------------------------------------------


@dataclass(slots=True)
class BulletinPost:
    id: str
    owner_id: Optional[str]
    event_date: str
    event_time: str
    category: BoardCategory
    group_name: str
    location: str
    status: BulletinStatus
    created_at: datetime
    live_title: Optional[str] = None
    description: Optional[str] = None
    x_id: Optional[str] = None
    images: list[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "BulletinPost":
        return cls(
            id=str(record["id"]),
            owner_id=str(record["owner_id"]) if record.get("owner_id") else None,
            event_date=record["event_date"],
            event_time=record.get("event_time") or "",
            category=BoardCategory(record["category"]) if record.get("category") else BoardCategory.OTHER,
            group_name=record.get("group_name") or "",
            location=record["location"],
            status=BulletinStatus(record.get("status") or BulletinStatus.PENDING.value),
            created_at=record.get("created_at") or utcnow(),
            live_title=record.get("live_title"),
            description=record.get("description"),
            x_id=record.get("x_id"),
            images=list(record.get("images") or []),
        )


@dataclass(slots=True)
class Report:
    id: str
    reporter_id: Optional[str]
    target_type: TargetType
    target_id: str
    category: ReportCategory
    status: ReportStatus
    created_at: datetime
    reason: Optional[ReportReason] = None
    details: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Report":
        return cls(
            id=str(record["id"]),
            reporter_id=str(record["reporter_id"]) if record.get("reporter_id") else None,
            target_type=TargetType.parse(record["target_type"]),
            target_id=str(record["target_id"]),
            category=ReportCategory.parse(record["category"]),
            status=ReportStatus.parse(record.get("status")),
            created_at=record.get("created_at") or utcnow(),
            reason=ReportReason(record["reason"]) if record.get("reason") else None,
            details=record.get("details"),
        )


@dataclass(slots=True)
class Reply:
    id: str
    content: str
    response: str
    category: InquiryCategory
    created_at: datetime

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Reply":
        return cls(
            id=str(record["id"]),
            content=record.get("content") or "",
            response=record["response"],
            category=InquiryCategory.parse(record.get("category")),
            created_at=record.get("created_at") or utcnow(),
        )


@dataclass(slots=True)
class Bookmark:
    id: str
    user_id: str
    target_type: TargetType
    target_id: str
    category: BookmarkCategory
    created_at: datetime

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Bookmark":
        if record.get("chant_id") is not None:
            target_type, target_id = TargetType.CHANT, record["chant_id"]
        else:
            target_type, target_id = TargetType.CALL_CHART, record["call_chart_id"]
        return cls(
            id=str(record["id"]),
            user_id=str(record["user_id"]),
            target_type=target_type,
            target_id=str(target_id),
            category=BookmarkCategory(record["category"]),
            created_at=record.get("created_at") or utcnow(),
        )


def bookmark_target_filter(target_type: TargetType, target_id: str) -> dict[str, Any]:
    """Column filter selecting a bookmark's target, one column per target type."""
    if target_type is TargetType.CHANT:
        return {"chant_id": target_id}
    return {"call_chart_id": target_id}


@dataclass(slots=True)
class Section:
    id: str
    call_chart_id: str
    section_name: str
    content: str
    order_index: int
    chant_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Section":
        return cls(
            id=str(record["id"]),
            call_chart_id=str(record["call_chart_id"]),
            section_name=record.get("section_name") or "—",
            content=record["content"],
            order_index=int(record.get("order_index") or 0),
            chant_id=str(record["chant_id"]) if record.get("chant_id") else None,
        )


@dataclass(slots=True)
class CallChart:
    id: str
    song_id: str
    author_id: Optional[str]
    author_name: str
    status: str
    created_at: datetime
    title: Optional[str] = None
    comment: Optional[str] = None
    sections: list[Section] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Mapping[str, Any], sections: list[Section] | None = None) -> "CallChart":
        return cls(
            id=str(record["id"]),
            song_id=str(record["song_id"]),
            author_id=str(record["author_id"]) if record.get("author_id") else None,
            author_name=record.get("author_name") or "",
            status=record.get("status") or "approved",
            created_at=record.get("created_at") or utcnow(),
            title=record.get("title"),
            comment=record.get("comment"),
            sections=sorted(sections or [], key=lambda section: section.order_index),
        )
