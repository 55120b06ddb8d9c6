"""MongoDB adapters.

Entry documents live in one collection per entry kind (``vocabulary``,
``articles``); root records live in ``users``.
"""

USERS_COLLECTION_NAME = 'users'
ENTRY_COLLECTION_NAMES = ('vocabulary', 'articles')
