"""aiohttp routes exposing the admin store under /api/admin."""

import json
import logging
from typing import Optional

from aiohttp import web

from .config import Settings, get_settings
from .errors import AdminError, AuthError, NotFoundError, ValidationError
from .access import can_manage_admins, has_permission
from .models import AdminAccount
from .payload import CreateAdminPayload, ResetPasswordPayload
from .permissions import Permission, PermissionSet
from .storage import SQLite
from .store import AdminStore
from .token import Token

logger = logging.getLogger(__name__)

STORE = web.AppKey("store", AdminStore)
TOKEN = web.AppKey("token", Token)
SETTINGS = web.AppKey("settings", Settings)
ACCOUNT = "admin_account"

STATUS_BY_KIND = {
    "validation": 400,
    "auth": 401,
    "not_found": 404,
    "duplicate_phone": 409,
    "owner_protected": 409,
    "transport": 502,
}

PUBLIC_PATHS = {"/api/admin/login"}


def ok(data: Optional[dict] = None, status: int = 200) -> web.Response:
    return web.json_response({"success": True, "data": data or {}}, status=status)


def error_response(error: AdminError, status: Optional[int] = None) -> web.Response:
    status = status or STATUS_BY_KIND.get(error.kind, 500)
    return web.json_response({"success": False, "error": error.to_dict()}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except AdminError as e:
        logger.info("%s %s failed: %s", request.method, request.path, e.kind)
        return error_response(e)


@web.middleware
async def auth_middleware(request: web.Request, handler):
    if request.path in PUBLIC_PATHS:
        return await handler(request)

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Access token required")

    claims = request.app[TOKEN].extract(token)
    try:
        account = await request.app[STORE].get(int(claims.get("sub")))
    except (NotFoundError, TypeError, ValueError):
        raise AuthError("Account no longer exists")

    # only the owner manages other admins
    if not can_manage_admins(account):
        logger.warning("admin %s denied %s %s", account.id, request.method, request.path)
        return error_response(AuthError("Only owners can manage admins"), status=403)

    request[ACCOUNT] = account
    return await handler(request)


async def read_json(request: web.Request) -> dict:
    try:
        data = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("Request body must be JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def admin_id(request: web.Request) -> int:
    try:
        return int(request.match_info["admin_id"])
    except ValueError:
        raise NotFoundError(f"Admin {request.match_info['admin_id']} not found")


def public(account: AdminAccount) -> dict:
    return account.to_public_dict()


routes = web.RouteTableDef()


@routes.post("/api/admin/login")
async def login(request: web.Request) -> web.Response:
    data = await read_json(request)
    account = await request.app[STORE].authenticate(
        str(data.get("phoneNumber", "")), str(data.get("password", ""))
    )
    settings = request.app[SETTINGS]
    token = request.app[TOKEN].for_account(account, settings.token_expiry_seconds)
    logger.info("admin %s logged in", account.id)
    capabilities = [p.value for p in Permission if has_permission(account, p)]
    return ok({"token": token, "admin": public(account), "capabilities": capabilities})


@routes.get("/api/admin/list")
async def list_admins(request: web.Request) -> web.Response:
    admins = await request.app[STORE].list()
    return ok({"admins": [public(a) for a in admins]})


@routes.post("/api/admin/create")
async def create_admin(request: web.Request) -> web.Response:
    payload = CreateAdminPayload.from_dict(await read_json(request)).validate()
    account = await request.app[STORE].create(
        payload.name, payload.phone_number, payload.password, payload.permissions
    )
    return ok({"admin": public(account)}, status=201)


@routes.get("/api/admin/{admin_id}")
async def get_admin(request: web.Request) -> web.Response:
    account = await request.app[STORE].get(admin_id(request))
    return ok({"admin": public(account)})


@routes.put("/api/admin/{admin_id}/permissions")
async def update_permissions(request: web.Request) -> web.Response:
    data = await read_json(request)
    permissions = PermissionSet.parse(data.get("permissions"))
    account = await request.app[STORE].update_permissions(
        admin_id(request), permissions
    )
    return ok({"admin": public(account)})


@routes.put("/api/admin/{admin_id}/password")
async def update_password(request: web.Request) -> web.Response:
    data = await read_json(request)
    payload = ResetPasswordPayload(new_password=data.get("newPassword")).validate()
    await request.app[STORE].update_password(admin_id(request), payload.new_password)
    return ok()


@routes.put("/api/admin/{admin_id}/status")
async def set_status(request: web.Request) -> web.Response:
    data = await read_json(request)
    active = data.get("active")
    if not isinstance(active, bool):
        raise ValidationError(errors={"active": "must be a boolean"})
    account = await request.app[STORE].set_active(admin_id(request), active)
    return ok({"admin": public(account)})


@routes.delete("/api/admin/{admin_id}")
async def delete_admin(request: web.Request) -> web.Response:
    await request.app[STORE].delete(admin_id(request))
    return ok()


def create_app(
    settings: Optional[Settings] = None, store: Optional[AdminStore] = None
) -> web.Application:
    settings = settings or get_settings()
    if store is None:
        store = AdminStore(SQLite(settings.database_path, settings.busy_timeout))

    app = web.Application(middlewares=[error_middleware, auth_middleware])
    app[SETTINGS] = settings
    app[STORE] = store
    app[TOKEN] = Token(settings.token_secret)
    app.add_routes(routes)

    async def bootstrap(app: web.Application):
        await app[STORE].init_schema()
        owner = await app[STORE].ensure_owner(
            settings.owner_name, settings.owner_phone, settings.owner_password
        )
        logger.info("owner account is %s", owner.id)

    app.on_startup.append(bootstrap)
    return app
