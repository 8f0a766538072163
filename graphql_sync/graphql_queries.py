"""
GraphQL Query Definitions — The products connection query used for pagination.

PRODUCTS_QUERY walks a Shopify Admin style `products` connection one page at
a time. It takes two variables:

  $first (Int!)     Page size for this request
  $after (String)   Cursor of the last edge from the previous page (omitted on
                    the first request)

Each edge carries its own `cursor`; the Paginator echoes the cursor of the
last edge back as `after`. `pageInfo.hasNextPage` tells it whether to keep
going.

The query cost is not part of the selection set. Servers that enforce a cost
budget report it in the top-level `extensions` object:

    "extensions": {
      "cost": {
        "requestedQueryCost": 12,
        "throttleStatus": {
          "maximumAvailable": 1000,
          "currentlyAvailable": 988,
          "restoreRate": 50
        }
      }
    }

Pipeline context:
  Sent by the Paginator on every iteration. The response is parsed by
  page_mapper.parse_products_page() and observed by ThrottleController.
"""

PRODUCTS_QUERY = """
query FetchProducts($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        title
        updatedAt
      }
    }
    pageInfo {
      hasNextPage
    }
  }
}
"""
