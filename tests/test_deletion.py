"""Tests for message deletion and orphaning."""

from uuid import uuid4

import pytest

from services.errors import AuthorizationError, ConflictError, NotFoundError
from services.threads import placeholder_id, reconstruct


class TestDeleteMessage:
    async def test_delete_orphans_direct_replies(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        first = await lifecycle.create_message(bob, channel.id, "first reply", parent_id=root.id)
        second = await lifecycle.create_message(alice, channel.id, "second reply", parent_id=root.id)
        root_id = root.id

        result = await deletion.delete_message(alice, root_id)

        assert result.deleted_id == root_id
        assert set(result.orphaned_ids) == {first.id, second.id}
        assert await lifecycle.messages.find_by_id(root_id) is None

        for reply_id in (first.id, second.id):
            reply = await lifecycle.messages.find_by_id(reply_id)
            assert reply.is_orphaned is True
            assert reply.parent_id == root_id

    async def test_orphaning_keeps_reply_timestamps(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        reply = await lifecycle.create_message(bob, channel.id, "reply", parent_id=root.id)
        created_at, updated_at = reply.created_at, reply.updated_at
        content, version = reply.content, reply.version

        await deletion.delete_message(alice, root.id)

        reloaded = await lifecycle.messages.find_by_id(reply.id)
        assert reloaded.created_at == created_at
        assert reloaded.updated_at == updated_at
        assert reloaded.content == content
        assert reloaded.version == version

    async def test_grandchildren_are_not_orphaned(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        child = await lifecycle.create_message(bob, channel.id, "child", parent_id=root.id)
        grandchild = await lifecycle.create_message(alice, channel.id, "grandchild", parent_id=child.id)

        result = await deletion.delete_message(alice, root.id)

        assert result.orphaned_ids == [child.id]
        reloaded = await lifecycle.messages.find_by_id(grandchild.id)
        assert reloaded.is_orphaned is False
        assert reloaded.parent_id == child.id

    async def test_delete_without_replies(self, lifecycle, deletion, channel, alice):
        message = await lifecycle.create_message(alice, channel.id, "alone")
        result = await deletion.delete_message(alice, message.id)
        assert result.orphaned_ids == []

    async def test_reply_drafts_are_orphaned_too(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        draft = await lifecycle.save_draft(bob, channel.id, "pending reply", parent_id=root.id)

        result = await deletion.delete_message(alice, root.id)

        assert draft.id in result.orphaned_ids
        reloaded = await lifecycle.messages.find_by_id(draft.id)
        assert reloaded.is_draft is True
        assert reloaded.is_orphaned is True

    async def test_second_delete_is_not_found(self, lifecycle, deletion, channel, alice):
        message = await lifecycle.create_message(alice, channel.id, "once")
        message_id = message.id
        await deletion.delete_message(alice, message_id)

        with pytest.raises(NotFoundError):
            await deletion.delete_message(alice, message_id)

    async def test_unknown_message(self, deletion, alice):
        with pytest.raises(NotFoundError):
            await deletion.delete_message(alice, uuid4())

    async def test_only_author_deletes(self, lifecycle, deletion, channel, alice, bob):
        message = await lifecycle.create_message(alice, channel.id, "mine")
        message_id = message.id

        with pytest.raises(AuthorizationError):
            await deletion.delete_message(bob, message_id)

        assert await lifecycle.messages.find_by_id(message_id) is not None

    async def test_foreign_draft_is_not_found(self, lifecycle, deletion, channel, alice, bob):
        draft = await lifecycle.save_draft(alice, channel.id, "secret")
        with pytest.raises(NotFoundError):
            await deletion.delete_message(bob, draft.id)

    async def test_author_can_delete_own_draft(self, lifecycle, deletion, channel, alice):
        draft = await lifecycle.save_draft(alice, channel.id, "discard me")
        await deletion.delete_message(alice, draft.id)

        fresh = await lifecycle.save_draft(alice, channel.id, "start over")
        assert fresh.id != draft.id


class TestAfterDeletion:
    async def test_orphans_cannot_be_replied_to(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        reply = await lifecycle.create_message(bob, channel.id, "reply", parent_id=root.id)
        reply_id = reply.id
        channel_id = channel.id
        await deletion.delete_message(alice, root.id)

        with pytest.raises(ConflictError):
            await lifecycle.save_draft(alice, channel_id, "reply to orphan", parent_id=reply_id)

        with pytest.raises(ConflictError):
            await lifecycle.create_message(alice, channel_id, "reply to orphan", parent_id=reply_id)

    async def test_orphans_remain_deletable(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        reply = await lifecycle.create_message(bob, channel.id, "reply", parent_id=root.id)
        await deletion.delete_message(alice, root.id)

        result = await deletion.delete_message(bob, reply.id)
        assert result.deleted_id == reply.id

    async def test_thread_shows_placeholder(self, lifecycle, deletion, channel, alice, bob):
        root = await lifecycle.create_message(alice, channel.id, "root")
        await lifecycle.create_message(bob, channel.id, "reply", parent_id=root.id)
        later = await lifecycle.create_message(bob, channel.id, "another thread")
        root_id = root.id

        await deletion.delete_message(alice, root_id)

        view = reconstruct(await lifecycle.visible_messages(channel.id))
        assert view.primary.root.id == placeholder_id(root_id)
        assert view.primary.root.is_placeholder
        assert [m.content for m in view.primary.children] == ["reply"]
        assert [block.root.id for block in view.others] == [later.id]
