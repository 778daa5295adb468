"""Household badge templates.

A template restyles a built-in achievement (``achievement``), the level
badge of one chore (``chore_level``), or defines a household's own badge
(``custom``). At most one template exists per achievement and per chore.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .badges import ACHIEVEMENTS
from .db.models import BadgeTemplateModel, ChoreModel
from .errors import ConflictError, InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian

TEMPLATE_TYPES = ("achievement", "chore_level", "custom")


class BadgeTemplateCreate(BaseModel):
    type: str
    built_in_badge_id: Optional[str] = Field(default=None, max_length=64)
    chore_id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=128)
    description: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=32)
    image_ref: Optional[str] = None
    translations: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    rule_config: Optional[Dict[str, Any]] = None
    is_active: bool = True


class BadgeTemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=128)
    description: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=32)
    image_ref: Optional[str] = None
    translations: Optional[Dict[str, Dict[str, str]]] = None
    rule_config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class BadgeTemplateView(BaseModel):
    id: str
    type: str
    built_in_badge_id: Optional[str]
    chore_id: Optional[str]
    chore_title: Optional[str]
    name: Optional[str]
    description: Optional[str]
    icon: Optional[str]
    image_ref: Optional[str]
    translations: Dict[str, Dict[str, str]]
    rule_config: Optional[Dict[str, Any]]
    is_active: bool
    created_at: datetime
    updated_at: datetime


_NULLABLE_FIELDS = ("name", "description", "icon", "image_ref", "rule_config")


def list_templates(session: Session, actor: Actor) -> List[BadgeTemplateView]:
    household_id = require_guardian(actor)
    stmt = (
        select(BadgeTemplateModel)
        .where(BadgeTemplateModel.household_id == household_id)
        .order_by(BadgeTemplateModel.type, BadgeTemplateModel.created_at.desc())
    )
    return [_view(template) for template in session.execute(stmt).scalars()]


def create_template(session: Session, actor: Actor, payload: BadgeTemplateCreate) -> BadgeTemplateView:
    household_id = require_guardian(actor)
    kind = (payload.type or "").strip().lower()
    if kind not in TEMPLATE_TYPES:
        raise InvalidArgumentError(f"type must be one of {', '.join(TEMPLATE_TYPES)}")

    built_in_badge_id: Optional[str] = None
    chore: Optional[ChoreModel] = None
    if kind == "achievement":
        built_in_badge_id = (payload.built_in_badge_id or "").strip()
        if built_in_badge_id not in {definition.id for definition in ACHIEVEMENTS}:
            raise InvalidArgumentError("A known built_in_badge_id is required for achievement templates")
    elif kind == "chore_level":
        if not payload.chore_id:
            raise InvalidArgumentError("chore_id is required for chore_level templates")
        chore = session.get(ChoreModel, payload.chore_id)
        if chore is None or chore.household_id != household_id:
            raise NotFoundError("Chore not found.")
    name = _clean(payload.name)
    if kind == "custom" and not name:
        raise InvalidArgumentError("name is required for custom templates")

    if _existing(session, household_id, built_in_badge_id, chore.id if chore else None) is not None:
        raise ConflictError("A template for this badge already exists")
    template = BadgeTemplateModel(
        household_id=household_id,
        type=kind,
        built_in_badge_id=built_in_badge_id,
        chore_id=chore.id if chore else None,
        name=name,
        description=_clean(payload.description),
        icon=_clean(payload.icon),
        image_ref=_clean(payload.image_ref),
        translations=payload.translations,
        rule_config=payload.rule_config,
        is_active=payload.is_active,
        created_by_id=actor.user_id,
        updated_by_id=actor.user_id,
    )
    template.chore = chore
    try:
        with session.begin_nested():
            session.add(template)
    except IntegrityError as exc:
        raise ConflictError("A template for this badge already exists") from exc
    return _view(template)


def update_template(
    session: Session, actor: Actor, template_id: str, changes: BadgeTemplateUpdate
) -> BadgeTemplateView:
    template = _require_template(session, actor, template_id)
    updates = {
        field: getattr(changes, field) if field == "rule_config" else _clean(getattr(changes, field))
        for field in _NULLABLE_FIELDS
        if field in changes.model_fields_set
    }
    if template.type == "custom" and not updates.get("name", template.name):
        raise InvalidArgumentError("name is required for custom templates")
    for field, value in updates.items():
        setattr(template, field, value)
    if changes.translations is not None:
        template.translations = changes.translations
    if changes.is_active is not None:
        template.is_active = changes.is_active
    template.updated_by_id = actor.user_id
    session.flush()
    return _view(template)


def delete_template(session: Session, actor: Actor, template_id: str) -> None:
    template = _require_template(session, actor, template_id)
    session.delete(template)
    session.flush()


def _existing(
    session: Session, household_id: str, built_in_badge_id: Optional[str], chore_id: Optional[str]
) -> Optional[BadgeTemplateModel]:
    if built_in_badge_id is None and chore_id is None:
        return None
    stmt = select(BadgeTemplateModel).where(BadgeTemplateModel.household_id == household_id)
    if built_in_badge_id is not None:
        stmt = stmt.where(BadgeTemplateModel.built_in_badge_id == built_in_badge_id)
    else:
        stmt = stmt.where(BadgeTemplateModel.chore_id == chore_id)
    return session.execute(stmt).scalars().first()


def _require_template(session: Session, actor: Actor, template_id: str) -> BadgeTemplateModel:
    household_id = require_guardian(actor)
    template = session.get(BadgeTemplateModel, template_id)
    if template is None or template.household_id != household_id:
        raise NotFoundError("Badge template not found.")
    return template


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _view(template: BadgeTemplateModel) -> BadgeTemplateView:
    return BadgeTemplateView(
        id=template.id,
        type=template.type,
        built_in_badge_id=template.built_in_badge_id,
        chore_id=template.chore_id,
        chore_title=template.chore.title if template.chore else None,
        name=template.name,
        description=template.description,
        icon=template.icon,
        image_ref=template.image_ref,
        translations=dict(template.translations or {}),
        rule_config=template.rule_config,
        is_active=template.is_active,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


__all__ = [
    "BadgeTemplateCreate",
    "BadgeTemplateUpdate",
    "BadgeTemplateView",
    "TEMPLATE_TYPES",
    "create_template",
    "delete_template",
    "list_templates",
    "update_template",
]
