"""Pagination response header helpers."""

from typing import Any

from fastapi import Response

from services.pagination import Page

TOTAL_COUNT_HEADER = "X-Total-Count"
PAGE_COUNT_HEADER = "X-Page-Count"
NEXT_PAGE_HEADER = "X-Next-Page"


def set_page_headers(response: Response, page: Page[Any]) -> None:
    response.headers[TOTAL_COUNT_HEADER] = str(page.total)
    response.headers[PAGE_COUNT_HEADER] = str(page.pages)
    if page.has_next:
        response.headers[NEXT_PAGE_HEADER] = str(page.page + 1)
