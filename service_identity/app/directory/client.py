"""
Account Directory client for the Identity Toolkit REST API.
"""

from __future__ import annotations

import json
import math
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

import httpx

from shared.errors import ErrorKind, IdentityError, invalid_argument
from shared.logging import get_logger
from ..identifiers import (
    EmailIdentifier,
    Identifier,
    PhoneIdentifier,
    ProviderIdentifier,
    UidIdentifier,
)
from ..validation.validators import is_email, is_non_empty_string, is_phone_number, is_uid

AccessTokenProvider = Callable[[], Awaitable[str]]

MAX_LIST_ACCOUNTS_RESULTS = 1000
MAX_LIST_PROVIDER_CONFIGS_RESULTS = 100
MAX_LIST_TENANTS_RESULTS = 1000

EMAIL_ACTION_REQUEST_TYPES = frozenset({"PASSWORD_RESET", "VERIFY_EMAIL", "EMAIL_SIGNIN"})

# Backend error codes, as the prefix of error.message, to error kinds.
# Codes missing from this table surface as INTERNAL_ERROR with the raw message.
SERVER_ERROR_KINDS: Dict[str, ErrorKind] = {
    "CONFIGURATION_NOT_FOUND": ErrorKind.CONFIGURATION_NOT_FOUND,
    "DUPLICATE_EMAIL": ErrorKind.EMAIL_ALREADY_EXISTS,
    "DUPLICATE_LOCAL_ID": ErrorKind.UID_ALREADY_EXISTS,
    "EMAIL_EXISTS": ErrorKind.EMAIL_ALREADY_EXISTS,
    "INSUFFICIENT_PERMISSION": ErrorKind.INSUFFICIENT_PERMISSION,
    "INVALID_CONFIG": ErrorKind.INVALID_CONFIG,
    "INVALID_EMAIL": ErrorKind.INVALID_EMAIL,
    "INVALID_ID_TOKEN": ErrorKind.INVALID_ID_TOKEN,
    "INVALID_PAGE_SELECTION": ErrorKind.INVALID_PAGE_TOKEN,
    "INVALID_PHONE_NUMBER": ErrorKind.INVALID_PHONE_NUMBER,
    "INVALID_PROVIDER_ID": ErrorKind.INVALID_PROVIDER_ID,
    "INVALID_SESSION_COOKIE_DURATION": ErrorKind.INVALID_SESSION_COOKIE_DURATION,
    "INVALID_TENANT_ID": ErrorKind.INVALID_TENANT_ID,
    "MISMATCHING_TENANT_ID": ErrorKind.MISMATCHING_TENANT_ID,
    "PHONE_NUMBER_EXISTS": ErrorKind.PHONE_NUMBER_ALREADY_EXISTS,
    "QUOTA_EXCEEDED": ErrorKind.QUOTA_EXCEEDED,
    "TENANT_NOT_FOUND": ErrorKind.TENANT_NOT_FOUND,
    "TOKEN_EXPIRED": ErrorKind.ID_TOKEN_EXPIRED,
    "UNAUTHORIZED_DOMAIN": ErrorKind.UNAUTHORIZED_DOMAIN,
    "USER_NOT_FOUND": ErrorKind.USER_NOT_FOUND,
}

# Python property names to wire names for account create/update payloads.
ACCOUNT_FIELDS = {
    "uid": "localId",
    "email": "email",
    "email_verified": "emailVerified",
    "phone_number": "phoneNumber",
    "display_name": "displayName",
    "photo_url": "photoUrl",
    "disabled": "disabled",
    "password": "password",
}

ACTION_CODE_SETTINGS_FIELDS = {
    "url": "continueUrl",
    "handle_code_in_app": "canHandleCodeInApp",
    "dynamic_link_domain": "dynamicLinkDomain",
    "ios_bundle_id": "iOSBundleId",
    "android_package_name": "androidPackageName",
    "android_install_app": "androidInstallApp",
    "android_minimum_version": "androidMinimumVersion",
}


class AccountDirectory(Protocol):
    """The RPCs the identity façade needs from the account backend."""

    async def get_account_by_uid(self, uid: str) -> Dict[str, Any]: ...

    async def get_account_by_email(self, email: str) -> Dict[str, Any]: ...

    async def get_account_by_phone(self, phone_number: str) -> Dict[str, Any]: ...

    async def get_accounts_by_identifiers(self, identifiers: Sequence[Identifier]) -> List[Dict[str, Any]]: ...

    async def list_accounts(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]: ...

    async def create_account(self, properties: Dict[str, Any]) -> str: ...

    async def update_account(self, uid: str, properties: Dict[str, Any]) -> str: ...

    async def delete_account(self, uid: str) -> None: ...

    async def delete_accounts(self, uids: Sequence[str], force: bool = True) -> Dict[str, Any]: ...

    async def set_custom_claims(self, uid: str, claims: Optional[Dict[str, Any]]) -> None: ...

    async def revoke_refresh_tokens(self, uid: str) -> None: ...

    async def import_accounts(self, records: Sequence[Dict[str, Any]], options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]: ...

    async def create_session_cookie(self, id_token: str, expires_in_seconds: int) -> str: ...

    async def get_email_action_link(self, request_type: str, email: str, settings: Optional[Dict[str, Any]] = None) -> str: ...

    async def list_oidc_configs(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]: ...

    async def list_saml_configs(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]: ...

    async def get_oidc_config(self, provider_id: str) -> Dict[str, Any]: ...

    async def get_saml_config(self, provider_id: str) -> Dict[str, Any]: ...

    async def create_oidc_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    async def create_saml_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_oidc_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_saml_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete_oidc_config(self, provider_id: str) -> None: ...

    async def delete_saml_config(self, provider_id: str) -> None: ...


def error_from_response(response: httpx.Response) -> IdentityError:
    """Translate a backend error payload into an IdentityError."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    message = ""
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        message = payload["error"].get("message") or ""

    # "USER_NOT_FOUND : optional detail"
    code, _, detail = message.partition(":")
    kind = SERVER_ERROR_KINDS.get(code.strip())
    if kind is None:
        return IdentityError(
            ErrorKind.INTERNAL_ERROR,
            f"An internal error has occurred. Raw server response: {response.text}",
            {"status_code": response.status_code},
        )
    return IdentityError(kind, detail.strip() or None, {"status_code": response.status_code})


def update_mask(request: Dict[str, Any], terminal_keys: Sequence[str] = (), prefix: str = "") -> List[str]:
    """Dotted field paths of `request`, recursing into nested objects."""
    paths: List[str] = []
    for key, value in request.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict) and value and key not in terminal_keys:
            paths.extend(update_mask(value, terminal_keys, f"{path}."))
        else:
            paths.append(path)
    return paths


def _to_wire(values: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    return {fields.get(key, key): value for key, value in values.items()}


class HttpAccountDirectory:
    """Account Directory backed by the Identity Toolkit REST API."""

    def __init__(
        self,
        project_id: str,
        access_token_provider: AccessTokenProvider,
        *,
        tenant_id: Optional[str] = None,
        base_url: str = "https://identitytoolkit.googleapis.com",
        http_timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not is_non_empty_string(project_id):
            raise invalid_argument("A project ID is required to access the account directory.")
        if tenant_id is not None and not is_non_empty_string(tenant_id):
            raise IdentityError(ErrorKind.INVALID_TENANT_ID)

        self.project_id = project_id
        self.tenant_id = tenant_id
        self.base_url = base_url.rstrip("/")
        self._access_token_provider = access_token_provider
        self._client = client or httpx.AsyncClient(timeout=http_timeout)
        self.logger = get_logger("identity.directory")

        scope = f"projects/{project_id}"
        if tenant_id:
            scope = f"{scope}/tenants/{tenant_id}"
        self._v1 = f"{self.base_url}/v1/{scope}"
        self._v2 = f"{self.base_url}/v2/{scope}"

    def for_tenant(self, tenant_id: str) -> "HttpAccountDirectory":
        """A directory scoped to `tenant_id`, sharing this client."""
        return HttpAccountDirectory(
            self.project_id,
            self._access_token_provider,
            tenant_id=tenant_id,
            base_url=self.base_url,
            client=self._client,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        access_token = await self._access_token_provider()
        headers = {"Authorization": f"Bearer {access_token}"}
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        try:
            response = await self._client.request(method, url, json=payload, params=params, headers=headers)
        except httpx.HTTPError as e:
            self.logger.error("Account directory request failed", method=method, url=url, error=str(e))
            raise

        if response.is_error:
            error = error_from_response(response)
            self.logger.warning(
                "Account directory returned an error",
                method=method,
                url=url,
                status_code=response.status_code,
                kind=error.kind.name,
            )
            raise error
        if not response.content:
            return {}
        return response.json()

    # Accounts

    async def _lookup_one(self, request: Dict[str, Any], identifier: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", f"{self._v1}/accounts:lookup", payload=request)
        users = response.get("users")
        if not users:
            raise IdentityError(ErrorKind.USER_NOT_FOUND, details=identifier)
        return users[0]

    async def get_account_by_uid(self, uid: str) -> Dict[str, Any]:
        if not is_uid(uid):
            raise IdentityError(ErrorKind.INVALID_UID)
        return await self._lookup_one({"localId": [uid]}, {"uid": uid})

    async def get_account_by_email(self, email: str) -> Dict[str, Any]:
        if not is_email(email):
            raise IdentityError(ErrorKind.INVALID_EMAIL)
        return await self._lookup_one({"email": [email]}, {"email": email})

    async def get_account_by_phone(self, phone_number: str) -> Dict[str, Any]:
        if not is_phone_number(phone_number):
            raise IdentityError(ErrorKind.INVALID_PHONE_NUMBER)
        return await self._lookup_one({"phoneNumber": [phone_number]}, {"phone_number": phone_number})

    async def get_accounts_by_identifiers(self, identifiers: Sequence[Identifier]) -> List[Dict[str, Any]]:
        if not identifiers:
            return []

        request: Dict[str, List[Any]] = {}
        for identifier in identifiers:
            if isinstance(identifier, UidIdentifier):
                request.setdefault("localId", []).append(identifier.uid)
            elif isinstance(identifier, EmailIdentifier):
                request.setdefault("email", []).append(identifier.email)
            elif isinstance(identifier, PhoneIdentifier):
                request.setdefault("phoneNumber", []).append(identifier.phone_number)
            elif isinstance(identifier, ProviderIdentifier):
                request.setdefault("federatedUserId", []).append(
                    {"providerId": identifier.provider_id, "rawId": identifier.provider_uid}
                )
            else:
                raise IdentityError(ErrorKind.INTERNAL_ERROR, "Unhandled identifier type")

        response = await self._request("POST", f"{self._v1}/accounts:lookup", payload=request)
        return response.get("users", [])

    async def list_accounts(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]:
        if max_results is None:
            max_results = MAX_LIST_ACCOUNTS_RESULTS
        if not isinstance(max_results, int) or not 0 < max_results <= MAX_LIST_ACCOUNTS_RESULTS:
            raise invalid_argument(
                f"Required \"maxResults\" must be a positive integer that does not exceed {MAX_LIST_ACCOUNTS_RESULTS}."
            )
        if page_token is not None and not is_non_empty_string(page_token):
            raise IdentityError(ErrorKind.INVALID_PAGE_TOKEN)

        response = await self._request(
            "GET",
            f"{self._v1}/accounts:batchGet",
            params={"maxResults": max_results, "nextPageToken": page_token},
        )
        response.setdefault("users", [])
        return response

    async def create_account(self, properties: Dict[str, Any]) -> str:
        if not isinstance(properties, dict):
            raise invalid_argument("Create request must be a valid object.")
        response = await self._request("POST", f"{self._v1}/accounts", payload=_to_wire(properties, ACCOUNT_FIELDS))
        if not response.get("localId"):
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "INTERNAL ASSERT FAILED: Unable to create new user")
        return response["localId"]

    async def update_account(self, uid: str, properties: Dict[str, Any]) -> str:
        if not is_uid(uid):
            raise IdentityError(ErrorKind.INVALID_UID)
        if not isinstance(properties, dict):
            raise invalid_argument("Properties argument must be a non-null object.")
        request = _to_wire(properties, ACCOUNT_FIELDS)
        request["localId"] = uid
        response = await self._request("POST", f"{self._v1}/accounts:update", payload=request)
        if not response.get("localId"):
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "INTERNAL ASSERT FAILED: Unable to update existing user")
        return response["localId"]

    async def delete_account(self, uid: str) -> None:
        if not is_uid(uid):
            raise IdentityError(ErrorKind.INVALID_UID)
        await self._request("POST", f"{self._v1}/accounts:delete", payload={"localId": uid})

    async def delete_accounts(self, uids: Sequence[str], force: bool = True) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"{self._v1}/accounts:batchDelete",
            payload={"localIds": list(uids), "force": force},
        )

    async def set_custom_claims(self, uid: str, claims: Optional[Dict[str, Any]]) -> None:
        if not is_uid(uid):
            raise IdentityError(ErrorKind.INVALID_UID)
        if claims is not None and not isinstance(claims, dict):
            raise invalid_argument("CustomUserClaims argument must be an object or null.")
        await self._request(
            "POST",
            f"{self._v1}/accounts:update",
            payload={"localId": uid, "customAttributes": json.dumps(claims or {})},
        )

    async def revoke_refresh_tokens(self, uid: str) -> None:
        if not is_uid(uid):
            raise IdentityError(ErrorKind.INVALID_UID)
        await self._request(
            "POST",
            f"{self._v1}/accounts:update",
            payload={"localId": uid, "validSince": math.ceil(time.time())},
        )

    async def import_accounts(
        self, records: Sequence[Dict[str, Any]], options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {"users": list(records)}
        if options:
            request.update(options)
        return await self._request("POST", f"{self._v1}/accounts:batchCreate", payload=request)

    async def create_session_cookie(self, id_token: str, expires_in_seconds: int) -> str:
        response = await self._request(
            "POST",
            f"{self._v1}:createSessionCookie",
            payload={"idToken": id_token, "validDuration": expires_in_seconds},
        )
        if not response.get("sessionCookie"):
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "INTERNAL ASSERT FAILED: Unable to create session cookie")
        return response["sessionCookie"]

    async def get_email_action_link(
        self, request_type: str, email: str, settings: Optional[Dict[str, Any]] = None
    ) -> str:
        if request_type not in EMAIL_ACTION_REQUEST_TYPES:
            raise invalid_argument(f"\"{request_type}\" is not a supported email action request type.")
        if not is_email(email):
            raise IdentityError(ErrorKind.INVALID_EMAIL)
        if request_type == "EMAIL_SIGNIN" and not isinstance(settings, dict):
            raise invalid_argument("\"ActionCodeSettings\" must be provided for email sign-in links.")

        request = {"requestType": request_type, "email": email, "returnOobLink": True}
        if settings:
            request.update(_to_wire(settings, ACTION_CODE_SETTINGS_FIELDS))
        response = await self._request("POST", f"{self._v1}/accounts:sendOobCode", payload=request)
        if not response.get("oobLink"):
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "INTERNAL ASSERT FAILED: Unable to create the email action link")
        return response["oobLink"]

    # Provider configs

    async def _list_configs(self, collection: str, max_results: Optional[int], page_token: Optional[str]) -> Dict[str, Any]:
        if max_results is None:
            max_results = MAX_LIST_PROVIDER_CONFIGS_RESULTS
        if not isinstance(max_results, int) or not 0 < max_results <= MAX_LIST_PROVIDER_CONFIGS_RESULTS:
            raise invalid_argument(
                f"Required \"maxResults\" must be a positive integer that does not exceed {MAX_LIST_PROVIDER_CONFIGS_RESULTS}."
            )
        if page_token is not None and not is_non_empty_string(page_token):
            raise IdentityError(ErrorKind.INVALID_PAGE_TOKEN)
        response = await self._request(
            "GET",
            f"{self._v2}/{collection}",
            params={"pageSize": max_results, "pageToken": page_token},
        )
        response.setdefault(collection, [])
        return response

    async def list_oidc_configs(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]:
        return await self._list_configs("oauthIdpConfigs", max_results, page_token)

    async def list_saml_configs(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]:
        return await self._list_configs("inboundSamlConfigs", max_results, page_token)

    async def get_oidc_config(self, provider_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{self._v2}/oauthIdpConfigs/{provider_id}")

    async def get_saml_config(self, provider_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{self._v2}/inboundSamlConfigs/{provider_id}")

    async def create_oidc_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"{self._v2}/oauthIdpConfigs", payload=request, params={"oauthIdpConfigId": provider_id}
        )

    async def create_saml_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"{self._v2}/inboundSamlConfigs", payload=request, params={"inboundSamlConfigId": provider_id}
        )

    async def update_oidc_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"{self._v2}/oauthIdpConfigs/{provider_id}",
            payload=request,
            params={"updateMask": ",".join(update_mask(request))},
        )

    async def update_saml_config(self, provider_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"{self._v2}/inboundSamlConfigs/{provider_id}",
            payload=request,
            params={"updateMask": ",".join(update_mask(request, terminal_keys=("idpCertificates",)))},
        )

    async def delete_oidc_config(self, provider_id: str) -> None:
        await self._request("DELETE", f"{self._v2}/oauthIdpConfigs/{provider_id}")

    async def delete_saml_config(self, provider_id: str) -> None:
        await self._request("DELETE", f"{self._v2}/inboundSamlConfigs/{provider_id}")

    # Tenants; only meaningful on a project-level directory

    def _require_project_scope(self) -> None:
        if self.tenant_id is not None:
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "Tenant management requires a project-level directory.")

    async def get_tenant(self, tenant_id: str) -> Dict[str, Any]:
        self._require_project_scope()
        return await self._request("GET", f"{self._v2}/tenants/{tenant_id}")

    async def list_tenants(self, max_results: Optional[int] = None, page_token: Optional[str] = None) -> Dict[str, Any]:
        self._require_project_scope()
        if max_results is None:
            max_results = MAX_LIST_TENANTS_RESULTS
        if not isinstance(max_results, int) or not 0 < max_results <= MAX_LIST_TENANTS_RESULTS:
            raise invalid_argument(
                f"Required \"maxResults\" must be a positive integer that does not exceed {MAX_LIST_TENANTS_RESULTS}."
            )
        if page_token is not None and not is_non_empty_string(page_token):
            raise IdentityError(ErrorKind.INVALID_PAGE_TOKEN)
        response = await self._request(
            "GET", f"{self._v2}/tenants", params={"pageSize": max_results, "pageToken": page_token}
        )
        response.setdefault("tenants", [])
        return response

    async def create_tenant(self, request: Dict[str, Any]) -> Dict[str, Any]:
        self._require_project_scope()
        return await self._request("POST", f"{self._v2}/tenants", payload=request)

    async def update_tenant(self, tenant_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        self._require_project_scope()
        return await self._request(
            "PATCH",
            f"{self._v2}/tenants/{tenant_id}",
            payload=request,
            params={"updateMask": ",".join(update_mask(request, terminal_keys=("testPhoneNumbers",)))},
        )

    async def delete_tenant(self, tenant_id: str) -> None:
        self._require_project_scope()
        await self._request("DELETE", f"{self._v2}/tenants/{tenant_id}")
