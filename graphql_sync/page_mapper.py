"""
Page Mapper — Turns one raw products response into a PageResult.

The response body has this structure:
    {
      "data": {
        "products": {
          "edges": [
            {
              "cursor": "eyJsYXN0X2lkIjoxMDAxfQ==",
              "node": { "id": "gid://shopify/Product/1001", "title": "...", "updatedAt": "..." }
            }
          ],
          "pageInfo": { "hasNextPage": true }
        }
      },
      "errors": [ { "message": "..." } ],     # optional
      "extensions": { "cost": { ... } }         # optional, see ThrottleController
    }

Key behaviors:
  - "data" missing entirely is a shape error; "data": null is not. Servers
    send a null data container alongside top-level errors, and that maps to
    an empty page with hasNextPage=False.
  - The page cursor is the cursor of the LAST edge; every edge with a cursor
    overwrites it while walking the list.
  - Missing node fields default to "" and unknown fields are ignored.
  - extract_graphql_errors() never raises.

Pipeline context:
    Called by the Paginator after each successful request.
"""

from typing import Any, Dict, List

from .models import PageResult, Product, ResponseShapeError

UNKNOWN_ERROR_MESSAGE = "Unknown GraphQL error"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def parse_product_node(node: Dict[str, Any]) -> Product:
    """Build a Product from an edge node, defaulting missing fields to ""."""
    return Product(
        id=_text(node.get("id")),
        title=_text(node.get("title")),
        updated_at=_text(node.get("updatedAt")),
    )


def parse_products_page(response_body: Dict[str, Any]) -> PageResult:
    """Parse the products connection out of a response body.

    Args:
        response_body: The full decoded JSON response (not just "data").

    Returns:
        A PageResult with products in edge order, the last edge cursor and
        the hasNextPage flag.

    Raises:
        ResponseShapeError: If "data" or "data.products" is missing.
    """
    if not isinstance(response_body, dict) or "data" not in response_body:
        raise ResponseShapeError("Response missing 'data' field")

    result = PageResult()

    data = response_body["data"]
    if data is None:
        return result

    if not isinstance(data, dict) or not isinstance(data.get("products"), dict):
        raise ResponseShapeError("Response missing 'data.products' field")
    products = data["products"]

    edges = products.get("edges")
    if isinstance(edges, list):
        for edge in edges:
            if not isinstance(edge, dict):
                continue
            if isinstance(edge.get("node"), dict):
                result.products.append(parse_product_node(edge["node"]))
            if edge.get("cursor") is not None:
                result.last_cursor = edge["cursor"]

    page_info = products.get("pageInfo")
    if isinstance(page_info, dict):
        result.has_next_page = bool(page_info.get("hasNextPage", False))

    return result


def extract_graphql_errors(response_body: Dict[str, Any]) -> List[str]:
    """Collect the human-readable messages from a top-level "errors" list.

    Returns an empty list when there are no errors or "errors" is not a list.
    """
    if not isinstance(response_body, dict):
        return []
    errors = response_body.get("errors")
    if not isinstance(errors, list):
        return []

    messages = []
    for err in errors:
        if isinstance(err, dict) and err.get("message") is not None:
            messages.append(_text(err["message"]))
        else:
            messages.append(UNKNOWN_ERROR_MESSAGE)
    return messages
