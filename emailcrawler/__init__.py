"""
Single-site email crawler.

- filters.py: url normalization and scope checks
- frontier.py: dedup work queue
- emails.py: two-stage email validation
- engine.py: the crawl loop
"""
