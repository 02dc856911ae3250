from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError as SchemaError

from pitchdesk.core.session import UserSession
from pitchdesk.errors import ConfirmationRequired, ExternalServiceFailure, ValidationError
from pitchdesk.types import (
    PROPOSAL_TONES,
    ExtractedProfile,
    PortfolioLink,
    UserProfile,
    generate_id,
    merge_skills,
)

logger = logging.getLogger(__name__)

NEW_PROFILE_LABEL = "Specialized Profile"
REMOVE_PROFILE_PROMPT = "Permanently delete this specialized profile context?"
LAST_PROFILE_MESSAGE = "You must have at least one profile."

PROFILE_FIELDS = {
    "label",
    "profile_name",
    "profile_headline",
    "upwork_profile_text",
    "your_profile_skills",
    "your_rate_preferences",
}
IDENTITY_FIELDS = {"preferred_tone", "previous_proposals", "portfolio_links"}


class ProfileExtractor(Protocol):
    def extract_profile_details(self, bio_text: str) -> ExtractedProfile: ...


def update_identity(session: UserSession, **updates: Any) -> None:
    unknown = set(updates) - IDENTITY_FIELDS
    if unknown:
        raise ValidationError(f"unknown identity fields: {sorted(unknown)}")

    identity = session.identity
    if "preferred_tone" in updates:
        tone = updates["preferred_tone"]
        if tone not in PROPOSAL_TONES:
            raise ValidationError(f"unsupported tone '{tone}'")
        identity.preferred_tone = tone
    if "previous_proposals" in updates:
        identity.previous_proposals = updates["previous_proposals"]
    if "portfolio_links" in updates:
        identity.portfolio_links = [PortfolioLink.model_validate(link) for link in updates["portfolio_links"]]
    session.commit()


def select_profile(session: UserSession, profile_id: str) -> UserProfile:
    profile = session.identity.get_profile(profile_id)
    if profile is None:
        raise ValidationError(f"profile {profile_id} not found")
    session.identity.active_profile_id = profile_id
    session.commit()
    return profile


def add_profile(session: UserSession) -> UserProfile:
    identity = session.identity
    profile = UserProfile(
        id=generate_id({p.id for p in identity.profiles}),
        label=NEW_PROFILE_LABEL,
        your_profile_skills=[],
    )
    identity.profiles.append(profile)
    identity.active_profile_id = profile.id
    session.editing_profile = True
    session.commit()
    logger.info("Added profile id=%s username=%s", profile.id, session.username)
    return profile


def remove_profile(session: UserSession, profile_id: str, *, confirmed: bool = False) -> None:
    identity = session.identity
    if len(identity.profiles) <= 1:
        raise ValidationError(LAST_PROFILE_MESSAGE)
    if identity.get_profile(profile_id) is None:
        raise ValidationError(f"profile {profile_id} not found")
    if not confirmed:
        raise ConfirmationRequired(REMOVE_PROFILE_PROMPT)

    identity.profiles = [p for p in identity.profiles if p.id != profile_id]
    if identity.active_profile_id == profile_id:
        identity.active_profile_id = identity.profiles[0].id
    session.commit()
    logger.info("Removed profile id=%s username=%s", profile_id, session.username)


def update_active_profile(session: UserSession, **fields: Any) -> UserProfile:
    unknown = set(fields) - PROFILE_FIELDS
    if unknown:
        raise ValidationError(f"unknown profile fields: {sorted(unknown)}")

    profile = session.active_profile
    if "your_profile_skills" in fields:
        fields["your_profile_skills"] = merge_skills([], list(fields["your_profile_skills"] or []))
    try:
        updated = UserProfile.model_validate({**profile.model_dump(), **fields})
    except SchemaError as exc:
        raise ValidationError(f"invalid profile update: {exc.errors()[0]['msg']}") from exc

    identity = session.identity
    identity.profiles = [updated if p.id == profile.id else p for p in identity.profiles]
    session.commit()
    return updated


def add_skill(session: UserSession, skill: str) -> list[str]:
    profile = session.active_profile
    merged = merge_skills(profile.your_profile_skills, [skill])
    if merged != profile.your_profile_skills:
        profile.your_profile_skills = merged
        session.commit()
    return profile.your_profile_skills


def remove_skill(session: UserSession, skill: str) -> list[str]:
    profile = session.active_profile
    profile.your_profile_skills = [s for s in profile.your_profile_skills if s != skill]
    session.commit()
    return profile.your_profile_skills


def add_portfolio_link(session: UserSession) -> list[PortfolioLink]:
    session.identity.portfolio_links.append(PortfolioLink(name="", url=""))
    session.commit()
    return session.identity.portfolio_links


def update_portfolio_link(
    session: UserSession,
    index: int,
    *,
    name: str | None = None,
    url: str | None = None,
) -> PortfolioLink:
    link = _portfolio_link_at(session, index)
    if name is not None:
        link.name = name
    if url is not None:
        link.url = url
    session.commit()
    return link


def remove_portfolio_link(session: UserSession, index: int) -> list[PortfolioLink]:
    _portfolio_link_at(session, index)
    del session.identity.portfolio_links[index]
    session.commit()
    return session.identity.portfolio_links


def extract_profile_details(
    session: UserSession,
    extractor: ProfileExtractor,
    bio_text: str | None = None,
) -> ExtractedProfile | None:
    """Fill the active profile from its bio via the generation service.

    Skills are merged into the existing set. Name, headline and rate take the
    returned value when it is non-empty and otherwise keep what was there.
    Failures leave the profile untouched and are only logged.
    """
    profile = session.active_profile
    text = bio_text if bio_text is not None else profile.upwork_profile_text
    if not text or not text.strip():
        return None

    try:
        extracted = extractor.extract_profile_details(text)
    except ExternalServiceFailure as exc:
        logger.warning("Profile extraction failed username=%s: %s", session.username, exc)
        return None

    profile.your_profile_skills = merge_skills(profile.your_profile_skills, extracted.skills)
    profile.your_rate_preferences = extracted.rate or profile.your_rate_preferences
    profile.profile_name = extracted.name or profile.profile_name
    profile.profile_headline = extracted.headline or profile.profile_headline
    session.editing_profile = False
    session.commit()
    return extracted


def _portfolio_link_at(session: UserSession, index: int) -> PortfolioLink:
    links = session.identity.portfolio_links
    if index < 0 or index >= len(links):
        raise ValidationError(f"portfolio link {index} not found")
    return links[index]
