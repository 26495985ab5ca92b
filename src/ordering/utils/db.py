"""Database schema helpers for the Ordering domain.

The memory provider needs nothing; with the ``production`` environment these
create and drop the PostgreSQL tables for every aggregate and entity
registered with the domain.
"""

from protean.domain import Domain


def setup_db(domain: Domain):
    """Create tables for all registered elements."""
    with domain.domain_context():
        domain.setup_database()


def drop_db(domain: Domain):
    with domain.domain_context():
        domain.drop_database()
