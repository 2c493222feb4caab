from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pymongo.errors import DuplicateKeyError
from ..errors import Conflict, NotFound, ValidationFailed, conflict_from_duplicate_key
from ..logging_config import get_logger
from ..models.site import Site
from ..models.user import Identity
from ..policy import ensure_can_modify
from ..utils import generate_api_key, parse_object_id, to_string_list

logger = get_logger(__name__)

UTC = timezone.utc


def with_domain(origins: List[str], domain: str) -> List[str]:
    """Return ``origins`` with the site's own domain appended when missing."""
    if domain and domain not in origins:
        return origins + [domain]
    return origins


async def _find_owned_site(db, identity: Identity, site_id: str, action: str):
    object_id = parse_object_id(site_id)
    site = await db.sites.find_one({"_id": object_id}) if object_id else None
    if not site:
        raise NotFound("Site not found")
    ensure_can_modify(identity, site["owner"], action=action, entity="site")
    return site


async def list_sites(db, identity: Identity):
    return await db.sites.find({"owner": identity.id}).to_list(length=None)


async def get_site(db, identity: Identity, site_id: str):
    return await _find_owned_site(db, identity, site_id, action="view")


async def create_site(db, identity: Identity, fields: Dict[str, Any], now: Optional[datetime] = None):
    for field, wire_name in (("name", "name"), ("domain", "domain"), ("site_id", "siteId")):
        value = fields.get(field)
        if value is None or not str(value).strip():
            raise ValidationFailed(wire_name, "Please provide name, domain, and siteId")

    if await db.sites.find_one({"site_id": fields["site_id"]}):
        raise Conflict("siteId")

    now = now or datetime.now(UTC)
    site = Site(
        site_id=fields["site_id"],
        name=fields["name"],
        domain=fields["domain"],
        description=fields.get("description"),
        api_key=generate_api_key(),
        owner=identity.id,
        allowed_origins=with_domain(to_string_list(fields.get("allowed_origins")), fields["domain"]),
        created_at=now,
        updated_at=now,
    )
    document = site.model_dump()

    try:
        result = await db.sites.insert_one(document)
    except DuplicateKeyError as e:
        raise conflict_from_duplicate_key(e)

    document["_id"] = result.inserted_id
    logger.info("Site %s created by %s", document["site_id"], identity.id)
    return document


async def update_site(db, identity: Identity, site_id: str, fields: Dict[str, Any], now: Optional[datetime] = None):
    site = await _find_owned_site(db, identity, site_id, action="update")

    for field in ("name", "domain"):
        if field in fields and (fields[field] is None or not str(fields[field]).strip()):
            raise ValidationFailed(field, f"{field.capitalize()} cannot be empty")

    changes: Dict[str, Any] = {}
    for field in ("name", "domain", "description"):
        if field in fields:
            changes[field] = fields[field]
    if "is_active" in fields:
        changes["is_active"] = bool(fields["is_active"])

    origins = site.get("allowed_origins") or []
    if "allowed_origins" in fields:
        origins = to_string_list(fields["allowed_origins"])
    changes["allowed_origins"] = with_domain(origins, changes.get("domain", site["domain"]))
    changes["updated_at"] = now or datetime.now(UTC)

    await db.sites.update_one({"_id": site["_id"]}, {"$set": changes})
    return {**site, **changes}


async def delete_site(db, identity: Identity, site_id: str) -> None:
    site = await _find_owned_site(db, identity, site_id, action="delete")
    await db.sites.delete_one({"_id": site["_id"]})
    logger.info("Site %s deleted by %s", site["site_id"], identity.id)


async def regenerate_api_key(db, identity: Identity, site_id: str) -> str:
    site = await _find_owned_site(db, identity, site_id, action="update")
    api_key = generate_api_key()

    try:
        await db.sites.update_one(
            {"_id": site["_id"]},
            {"$set": {"api_key": api_key, "updated_at": datetime.now(UTC)}},
        )
    except DuplicateKeyError as e:
        raise conflict_from_duplicate_key(e)

    logger.info("API key regenerated for site %s", site["site_id"])
    return api_key
