from unittest.mock import AsyncMock, MagicMock

from iam.abac import Effect, Policy


def make_policy(
    actions,
    resources=("*",),
    effect=Effect.ALLOW,
    name="FooPolicy",
    condition=None,
) -> Policy:
    return Policy(
        name=name,
        effect=effect,
        actions=list(actions),
        resources=list(resources),
        condition=condition,
    )


def make_collection() -> MagicMock:
    """A motor collection double: query methods are awaitable, find() is a cursor."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.update_many = AsyncMock()

    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    cursor.sort.return_value = cursor
    collection.find.return_value = cursor
    return collection
