"""Car marketplace notification dispatch service."""
