# Services package.
#
# Each module exposes async functions that take an AsyncSession first,
# so the router layer controls the transaction boundary via ``get_db``:
#
#   user_service       registration, login, current-user payload
#   profile_service    partial profile update + public profile view
#   relation_service   follow/unfollow, bookmark/unbookmark
#   article_service    slug lookup + per-viewer article view (cached)
