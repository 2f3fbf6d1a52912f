"""
Item state model.

An Item is one scraped news article on its way to becoming a posted video.
Progress is persisted as one boolean flag per stage; the Stage enum gives the
same information as an ordered value and knows which inputs each stage needs
and which outputs it must leave behind.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Stage(IntEnum):
    """Pipeline stages in their fixed order."""

    SCRAPED = 1
    PROMPTS_READY = 2
    IMAGES_READY = 3
    AUDIO_READY = 4
    VIDEO_READY = 5
    PUBLISHED = 6

    @property
    def flag(self) -> str:
        """Persisted boolean flag name for this stage."""
        return _FLAG_NAMES[self]

    @classmethod
    def from_flag(cls, flag: str) -> Stage:
        for stage, name in _FLAG_NAMES.items():
            if name == flag:
                return stage
        raise ValueError(f"Unknown stage flag: {flag}")


_FLAG_NAMES = {
    Stage.SCRAPED: "scraped",
    Stage.PROMPTS_READY: "prompts_ready",
    Stage.IMAGES_READY: "image_done",
    Stage.AUDIO_READY: "audio_done",
    Stage.VIDEO_READY: "video_done",
    Stage.PUBLISHED: "published",
}

# Fields a stage payload may merge into the item
PAYLOAD_FIELDS = {
    "title", "body", "posted_date", "source",
    "derived_title", "derived_text", "hashtags", "image_prompts",
    "media_refs", "audio_ref", "video_ref",
    "publish_unconfirmed", "cleaned_up",
}


@dataclass
class ImagePrompt:
    prompt: str
    aspect: str = ""

    @classmethod
    def from_value(cls, value: Any) -> ImagePrompt:
        if isinstance(value, ImagePrompt):
            return value
        if isinstance(value, dict):
            return cls(prompt=str(value.get("prompt", "")), aspect=str(value.get("aspect", "")))
        return cls(prompt=str(value))


@dataclass
class StageFlag:
    done: bool = False
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class RawArticle:
    """What a scraper hands to the core."""

    title: str
    link: str
    content: str = ""
    posted_date: Optional[str] = None
    source: str = ""


@dataclass
class Item:
    """One news article moving through the pipeline."""

    source_link: str
    title: str = ""
    body: str = ""
    posted_date: Optional[str] = None
    source: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    derived_title: str = ""
    derived_text: str = ""
    hashtags: List[str] = field(default_factory=list)
    image_prompts: List[ImagePrompt] = field(default_factory=list)
    media_refs: List[str] = field(default_factory=list)
    audio_ref: Optional[str] = None
    video_ref: Optional[str] = None

    flags: Dict[str, StageFlag] = field(
        default_factory=lambda: {stage.flag: StageFlag() for stage in Stage}
    )
    publish_unconfirmed: bool = False
    cleaned_up: bool = False

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # ---------- Flags ----------
    def flag(self, stage: Stage) -> StageFlag:
        return self.flags.setdefault(stage.flag, StageFlag())

    def is_done(self, stage: Stage) -> bool:
        return self.flag(stage).done

    def last_error(self, stage: Stage) -> Optional[str]:
        return self.flag(stage).last_error

    @property
    def stage(self) -> Optional[Stage]:
        """Furthest stage reached with every earlier stage also done."""
        reached = None
        for stage in Stage:
            if not self.is_done(stage):
                break
            reached = stage
        return reached

    # ---------- Gating ----------
    def missing_inputs(self, stage: Stage) -> List[str]:
        """Precursors ``stage`` needs that this item does not have yet."""
        missing = []
        if stage == Stage.SCRAPED:
            if not self.source_link:
                missing.append("source_link")
        elif stage == Stage.PROMPTS_READY:
            if not self.is_done(Stage.SCRAPED):
                missing.append("scraped")
            if not (self.title or self.body):
                missing.append("title/body")
        elif stage == Stage.IMAGES_READY:
            if not self.is_done(Stage.PROMPTS_READY):
                missing.append("prompts_ready")
            if not any(p.prompt.strip() for p in self.image_prompts):
                missing.append("image_prompts")
        elif stage == Stage.AUDIO_READY:
            if not self.is_done(Stage.PROMPTS_READY):
                missing.append("prompts_ready")
            if not self.derived_text:
                missing.append("derived_text")
        elif stage == Stage.VIDEO_READY:
            if not self.is_done(Stage.IMAGES_READY):
                missing.append("image_done")
            if not self.is_done(Stage.AUDIO_READY):
                missing.append("audio_done")
            if not self.media_refs:
                missing.append("media_refs")
            if not self.audio_ref:
                missing.append("audio_ref")
        elif stage == Stage.PUBLISHED:
            if not self.is_done(Stage.VIDEO_READY):
                missing.append("video_done")
            if not self.video_ref:
                missing.append("video_ref")
        return missing

    def missing_outputs(self, stage: Stage) -> List[str]:
        """Outputs ``stage`` must have produced before its flag is set."""
        required = {
            Stage.PROMPTS_READY: ("derived_text", self.derived_text),
            Stage.IMAGES_READY: ("media_refs", self.media_refs),
            Stage.AUDIO_READY: ("audio_ref", self.audio_ref),
            Stage.VIDEO_READY: ("video_ref", self.video_ref),
        }.get(stage)
        if required and not required[1]:
            return [required[0]]
        return []

    # ---------- Mutation ----------
    def apply_payload(self, payload: Dict[str, Any]) -> None:
        unknown = set(payload) - PAYLOAD_FIELDS
        if unknown:
            raise ValueError(f"Unknown item fields in payload: {sorted(unknown)}")
        for key, value in payload.items():
            if key == "image_prompts":
                value = [ImagePrompt.from_value(p) for p in value or []]
            elif key in ("media_refs", "hashtags"):
                value = list(value or [])
            setattr(self, key, value)

    # ---------- Serialization ----------
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        data["flags"] = {
            name: {
                "done": flag.done,
                "last_error": flag.last_error,
                "updated_at": flag.updated_at.isoformat() if flag.updated_at else None,
            }
            for name, flag in self.flags.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Item:
        data = dict(data)
        flags = {stage.flag: StageFlag() for stage in Stage}
        for name, raw in (data.pop("flags", None) or {}).items():
            updated = raw.get("updated_at")
            flags[name] = StageFlag(
                done=bool(raw.get("done", False)),
                last_error=raw.get("last_error"),
                updated_at=datetime.fromisoformat(updated) if updated else None,
            )
        prompts = [ImagePrompt.from_value(p) for p in data.pop("image_prompts", None) or []]
        for key in ("created_at", "updated_at"):
            if data.get(key):
                data[key] = datetime.fromisoformat(data[key])
            else:
                data.pop(key, None)
        return cls(flags=flags, image_prompts=prompts, **data)


@dataclass
class CreateResult:
    created: bool
    id: str


class EligibilityPredicate(Enum):
    """Named queries selecting items ready for a stage."""

    NEEDS_PROMPTS = "needs_prompts"
    NEEDS_IMAGES = "needs_images"
    NEEDS_AUDIO = "needs_audio"
    NEEDS_VIDEO = "needs_video"
    NEEDS_PUBLISH = "needs_publish"
    NEEDS_CLEANUP = "needs_cleanup"

    @property
    def stage(self) -> Optional[Stage]:
        return _PREDICATE_STAGES.get(self)

    def matches(self, item: Item) -> bool:
        if self is EligibilityPredicate.NEEDS_CLEANUP:
            return item.is_done(Stage.PUBLISHED) and not item.cleaned_up

        stage = self.stage
        if item.is_done(stage) or item.missing_inputs(stage):
            return False
        if self is EligibilityPredicate.NEEDS_PUBLISH and item.publish_unconfirmed:
            return False
        return True


_PREDICATE_STAGES = {
    EligibilityPredicate.NEEDS_PROMPTS: Stage.PROMPTS_READY,
    EligibilityPredicate.NEEDS_IMAGES: Stage.IMAGES_READY,
    EligibilityPredicate.NEEDS_AUDIO: Stage.AUDIO_READY,
    EligibilityPredicate.NEEDS_VIDEO: Stage.VIDEO_READY,
    EligibilityPredicate.NEEDS_PUBLISH: Stage.PUBLISHED,
}
