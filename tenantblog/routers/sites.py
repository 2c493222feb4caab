from fastapi import APIRouter, Depends, status
from tenantblog.db import get_db
from tenantblog.models.user import Identity
from tenantblog.schemas import SiteCreation, SiteUpdate, single_site_serializer
from tenantblog.security import get_current_user
from tenantblog.services import site_service

router = APIRouter()


@router.get("")
async def list_user_sites(db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    sites = await site_service.list_sites(db, current_user)
    return [single_site_serializer(site) for site in sites]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_site(site_form: SiteCreation, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Register a tenant site owned by the caller.
    The site's domain is always added to its allowed origins and a fresh
    API key is generated.
    Raises:
        ValidationFailed: name, domain or siteId missing
        Conflict: siteId already taken
    """
    site = await site_service.create_site(db, current_user, site_form.model_dump(exclude_unset=True))
    return single_site_serializer(site)


@router.get("/{site_id}")
async def get_site(site_id: str, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Retrieve one site, including its API key.
    Raises:
        NotFound: no site with this ID
        Unauthorized: the caller is neither the owner nor an admin
    """
    site = await site_service.get_site(db, current_user, site_id)
    return single_site_serializer(site)


@router.put("/{site_id}")
async def update_site(site_id: str, site_form: SiteUpdate, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Update the fields present in the request body of a site.
    Args:
        site_id (str): The ID of the site to update
        site_form (SiteUpdate): name, domain, description, isActive and allowedOrigins;
            allowedOrigins may be a comma-separated string or a list
        db: Database connection dependency
        current_user (Identity): The authenticated caller, owner or admin
    Returns:
        dict: The updated site; its domain is always among allowedOrigins
    Raises:
        NotFound: no site with this ID
        Unauthorized: the caller is neither the owner nor an admin
        ValidationFailed: name or domain supplied blank
    """
    site = await site_service.update_site(db, current_user, site_id, site_form.model_dump(exclude_unset=True))
    return single_site_serializer(site)


@router.delete("/{site_id}")
async def delete_site(site_id: str, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Delete a site. Its API key stops working immediately.
    Args:
        site_id (str): The ID of the site to delete
        db: Database connection dependency
        current_user (Identity): The authenticated caller, owner or admin
    Returns:
        dict: A message confirming the deletion
    Raises:
        NotFound: no site with this ID
        Unauthorized: the caller is neither the owner nor an admin
    """
    await site_service.delete_site(db, current_user, site_id)
    return {"message": "Site removed"}


@router.post("/{site_id}/regenerate-key")
async def regenerate_api_key(site_id: str, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Replace a site's API key; the previous key is rejected from now on.
    Args:
        site_id (str): The ID of the site
        db: Database connection dependency
        current_user (Identity): The authenticated caller, owner or admin
    Returns:
        dict: A message and the new apiKey; the old key is never echoed
    Raises:
        NotFound: no site with this ID
        Unauthorized: the caller is neither the owner nor an admin
    """
    api_key = await site_service.regenerate_api_key(db, current_user, site_id)
    return {"message": "API key regenerated successfully", "apiKey": api_key}
