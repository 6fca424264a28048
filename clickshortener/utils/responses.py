"""API Gateway Lambda proxy response builders

Every response carries the CORS headers and a JSON body. Error bodies look like:

    {"message": "Not Found (no link found for slug 'abc123')", "errorCode": "LINK_NOT_FOUND"}

Example:
    >>> response_404(message="no link found for slug 'abc123'", error_code='LINK_NOT_FOUND')['statusCode']
    404
"""

import json
from typing import Any


CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Authorization,Content-Type',
    'Access-Control-Allow-Methods': 'OPTIONS,GET,POST,PATCH,DELETE',
}

REASONS = {
    400: 'Bad Request',
    401: 'Unauthorized',
    403: 'Forbidden',
    404: 'Not Found',
    405: 'Method Not Allowed',
    409: 'Conflict',
    410: 'Gone',
    500: 'Internal Server Error',
    503: 'Service Unavailable',
}


def response(status_code: int, body: dict[str, Any], headers: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json', **CORS_HEADERS, **(headers or {})},
        'body': json.dumps(body, default=str),
    }


def error_response(status_code: int, message: str | None = None, error_code: str | None = None, **extra) -> dict[str, Any]:
    base = REASONS[status_code]
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    body.update(extra)
    return response(status_code, body)


def response_200(body: dict[str, Any]) -> dict[str, Any]:
    return response(200, body)


def response_302(*, location: str) -> dict[str, Any]:
    return response(302, {}, headers={'Location': location, 'Cache-Control': 'no-store'})


def response_400(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(400, message, error_code)


def response_401(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(401, message, error_code)


def response_403(message: str | None = None, error_code: str | None = None, **extra) -> dict[str, Any]:
    return error_response(403, message, error_code, **extra)


def response_404(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(404, message, error_code)


def response_405(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(405, message, error_code)


def response_409(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(409, message, error_code)


def response_410(message: str | None = None, error_code: str | None = None, **extra) -> dict[str, Any]:
    return error_response(410, message, error_code, **extra)


def response_500(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(500, message, error_code)


def response_503(message: str | None = None, error_code: str | None = None) -> dict[str, Any]:
    return error_response(503, message, error_code)


def link_to_dict(link, short_url: str | None = None) -> dict[str, Any]:
    """Client-facing view of a LinkModel (camelCase keys, ISO 8601 timestamps)."""
    data = {
        'id': link.id,
        'slug': link.slug,
        'customSlug': link.custom_slug,
        'targetUrl': link.target_url,
        'title': link.title,
        'active': link.active,
        'expiresAt': link.expires_at.isoformat() if link.expires_at else None,
        'clickCount': link.click_count,
        'createdAt': link.created_at.isoformat() if link.created_at else None,
    }
    if short_url is not None:
        data['shortUrl'] = short_url
    return data
