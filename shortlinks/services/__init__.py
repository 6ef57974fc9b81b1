"""
Services module for business logic separation.

- code_generator: random URL-safe short codes
- link_store: atomic reads and writes of short_links rows
- url_service: shortening (validation, custom codes, collision retry)
- redirect_service: resolution state machine with click counting
- ownership: owner-scoped delete and list
- stats_service: click counts and link statistics
"""
