"""
GraphQL documents sent to the backend's /graphql/v1 endpoint
"""

_POST_FIELDS = """
          id
          title
          slug
          excerpt
          cover_image
          published_at
          category_id
          author_id
          is_published
"""

_PAGE_INFO = """
      pageInfo {
        hasNextPage
        hasPreviousPage
      }
"""

GET_PAGINATED_POSTS = f"""
query GetPaginatedPosts($limit: Int!, $offset: Int!) {{
  postsCollection(
    first: $limit
    offset: $offset
    orderBy: {{ published_at: DescNullsLast }}
    filter: {{ is_published: {{ eq: true }} }}
  ) {{
    edges {{
      node {{{_POST_FIELDS}      }}
    }}{_PAGE_INFO}  }}
}}
"""

GET_PAGINATED_POSTS_BY_CATEGORY = f"""
query GetPaginatedPostsByCategory($limit: Int!, $offset: Int!, $categoryId: UUID!) {{
  postsCollection(
    first: $limit
    offset: $offset
    orderBy: {{ published_at: DescNullsLast }}
    filter: {{ is_published: {{ eq: true }}, category_id: {{ eq: $categoryId }} }}
  ) {{
    edges {{
      node {{{_POST_FIELDS}      }}
    }}{_PAGE_INFO}  }}
}}
"""

# Same page, with each post's author profile resolved through the
# posts.author_id → profiles.id relationship.
_AUTHOR_FIELDS = """
          author: profiles {
            id
            full_name
            username
            avatar_url
          }
"""

GET_PAGINATED_POSTS_WITH_AUTHORS = f"""
query GetPaginatedPostsWithAuthors($limit: Int!, $offset: Int!) {{
  postsCollection(
    first: $limit
    offset: $offset
    orderBy: {{ published_at: DescNullsLast }}
    filter: {{ is_published: {{ eq: true }} }}
  ) {{
    edges {{
      node {{{_POST_FIELDS}{_AUTHOR_FIELDS}      }}
    }}{_PAGE_INFO}  }}
}}
"""

GET_PAGINATED_POSTS_BY_CATEGORY_WITH_AUTHORS = f"""
query GetPaginatedPostsByCategoryWithAuthors($limit: Int!, $offset: Int!, $categoryId: UUID!) {{
  postsCollection(
    first: $limit
    offset: $offset
    orderBy: {{ published_at: DescNullsLast }}
    filter: {{ is_published: {{ eq: true }}, category_id: {{ eq: $categoryId }} }}
  ) {{
    edges {{
      node {{{_POST_FIELDS}{_AUTHOR_FIELDS}      }}
    }}{_PAGE_INFO}  }}
}}
"""

GET_CATEGORIES = """
query GetCategories {
  categoriesCollection(orderBy: { name: AscNullsLast }) {
    edges {
      node {
        id
        name
        slug
        description
      }
    }
  }
}
"""

GET_CATEGORY_BY_SLUG = """
query GetCategoryBySlug($slug: String!) {
  categoriesCollection(filter: { slug: { eq: $slug } }, first: 1) {
    edges {
      node {
        id
        name
        slug
        description
      }
    }
  }
}
"""

PROFILE_COLUMNS = "id,full_name,username,avatar_url"
