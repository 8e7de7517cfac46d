# src/secure_messaging/services/messaging.py
"""Conversation and message lifecycle operations."""

from __future__ import annotations

import logging
from typing import Any

from secure_messaging.core.errors import (
    AuthorizationError,
    ConflictError,
    CryptoError,
    MessagingError,
    NotFoundError,
    ValidationError,
)
from secure_messaging.core.settings import Settings, settings
from secure_messaging.db.time import Clock, now_ms
from secure_messaging.schemas import (
    Attachment,
    ConversationMetadata,
    ConversationRecord,
    ConversationType,
    Envelope,
    KeyType,
    MessageRecord,
    MessageType,
    UserKeyRecord,
)
from secure_messaging.services.crypto import KEY_LENGTH_BYTES, CryptoService
from secure_messaging.services.identity import (
    is_participant,
    validate_conversation_id,
    validate_identity,
    validate_identity_set,
)
from secure_messaging.services.key_derivation import (
    canonical_participants,
    conversation_id_for,
    derive_key,
    key_label,
    mint_key_label,
)
from secure_messaging.services.rate_limiter import RateLimiter
from secure_messaging.services.replay import ReplayGuard
from secure_messaging.store import MessagingStore
from secure_messaging.utils.text import sanitize_text, validate_text_length, validate_text_not_empty

logger = logging.getLogger(__name__)

HEALTH_STATUS = "Secure Messaging service is healthy"

_MAX_MESSAGE_ID = 2**63 - 1


class MessagingService:
    """Orchestrates identity checks, anti-abuse guards, encryption and storage.

    The service operates on an already opened :class:`MessagingStore`. Each
    public operation commits its own writes, so a failed call leaves the
    conversation and message maps as they were.
    """

    def __init__(
        self,
        store: MessagingStore,
        *,
        clock: Clock = now_ms,
        config: Settings = settings,
        crypto: CryptoService | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.config = config
        self.crypto = crypto or CryptoService()
        self.rate_limiter = RateLimiter(store, clock)
        self.replay_guard = ReplayGuard(
            store,
            clock,
            expiry_ms=config.nonce_expiry_ms,
            future_skew_ms=config.nonce_future_skew_ms,
        )

    def _derive_key(self, conversation: ConversationRecord) -> bytes:
        return derive_key(conversation.participants, self.config.key_domain_separator)

    def _load_conversation(self, conversation_id: str) -> ConversationRecord:
        conversation = self.store.conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    def _load_message(self, message_id: int) -> MessageRecord:
        message = self.store.messages.get(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        return message

    def _require_participant(self, conversation: ConversationRecord, identity: str) -> None:
        if not is_participant(conversation, identity):
            logger.warning(
                "Denied %s access to conversation %s: not a participant",
                identity,
                conversation.id,
            )
            raise AuthorizationError("Unauthorized: Not a participant in this conversation")

    # --- Conversations --------------------------------------------------------------
    def create_conversation(
        self,
        caller: str,
        participants: list[str],
        conversation_type: ConversationType = ConversationType.DIRECT,
        metadata: ConversationMetadata | None = None,
    ) -> ConversationRecord:
        """Create the conversation between ``participants``.

        Args:
            caller: Authenticated identity issuing the request.
            participants: Identities taking part; must include ``caller``.
            conversation_type: Kind of conversation to create.
            metadata: Optional descriptive data. ``encryption_key_id`` defaults
                to the label of the derived conversation key.

        Returns:
            The stored conversation.

        Raises:
            ValidationError: For invalid identities, a caller missing from the
                participants, or fewer than two distinct participants.
            ConflictError: If a conversation with the same participants exists.
        """
        validate_identity(caller, "caller")
        validate_identity_set(participants)
        if caller not in participants:
            raise ValidationError("Caller must be a participant")
        members = canonical_participants(participants)
        if len(members) < 2:
            raise ValidationError("Conversation must have at least 2 participants")

        conversation_id = conversation_id_for(members)
        details = (metadata or ConversationMetadata()).model_copy()
        if not details.encryption_key_id:
            details.encryption_key_id = key_label(
                derive_key(members, self.config.key_domain_separator)
            )

        now = self.clock()
        conversation = ConversationRecord(
            id=conversation_id,
            participants=members,
            conversation_type=conversation_type,
            metadata=details,
            created_at=now,
            updated_at=now,
        )
        with self.store.atomic():
            if conversation_id in self.store.conversations:
                raise ConflictError("Conversation already exists")
            self.store.conversations.insert(conversation_id, conversation)

        logger.info(
            "Created %s conversation %s with %d participants",
            conversation_type.value,
            conversation_id,
            len(members),
        )
        return conversation

    def get_user_conversations(self, caller: str) -> list[ConversationRecord]:
        """Return the caller's non-archived conversations, most recently updated first.

        An invalid caller yields an empty list rather than an error.
        """
        try:
            validate_identity(caller, "caller")
        except ValidationError:
            return []
        conversations = [
            conversation
            for conversation in self.store.conversations.values()
            if is_participant(conversation, caller) and not conversation.is_archived
        ]
        conversations.sort(key=lambda conversation: conversation.updated_at, reverse=True)
        return conversations

    def archive_conversation(self, caller: str, conversation_id: str) -> ConversationRecord:
        """Archive a conversation. Archiving is permanent; messages stay readable."""
        validate_identity(caller, "caller")
        validate_conversation_id(conversation_id)
        with self.store.atomic():
            conversation = self._load_conversation(conversation_id)
            self._require_participant(conversation, caller)
            conversation.is_archived = True
            conversation.updated_at = self.clock()
            self.store.conversations.insert(conversation_id, conversation)
        logger.info("Conversation %s archived by %s", conversation_id, caller)
        return conversation

    def generate_conversation_key_label(self, caller: str, conversation_id: str) -> str:
        """Mint a fresh key label for a conversation the caller belongs to."""
        validate_identity(caller, "caller")
        validate_conversation_id(conversation_id)
        conversation = self._load_conversation(conversation_id)
        self._require_participant(conversation, caller)
        return mint_key_label(conversation_id, self.clock())

    def rotate_conversation_key_label(
        self, caller: str, conversation_id: str, old_key_id: str
    ) -> str:
        """Replace ``old_key_id`` with a newly minted label.

        Only the label changes. The key stays a function of the participant
        set, so messages encrypted before the rotation remain readable.
        """
        validate_text_not_empty(old_key_id, "Old key ID")
        label = self.generate_conversation_key_label(caller, conversation_id)
        logger.info("Rotated key label for conversation %s", conversation_id)
        return label

    # --- Messages -------------------------------------------------------------------
    def _seal_attachment(self, attachment: Attachment, key: bytes) -> Attachment:
        if not attachment.encrypted_data:
            return attachment.model_copy()
        validate_text_length(
            attachment.encrypted_data, self.config.max_payload_length, "Attachment payload"
        )
        envelope = self.crypto.encrypt(attachment.encrypted_data, key)
        return attachment.model_copy(update={"encrypted_data": envelope.to_json()})

    def _check_stored_size(
        self,
        caller: str,
        conversation_id: str,
        recipient_id: str,
        content: str,
        message_type: MessageType,
        reply_to: int | None,
        attachments: list[Attachment],
    ) -> None:
        """Reject content whose encrypted record would exceed the message ceiling.

        Envelope length depends only on plaintext length, so sealing under a
        placeholder key and the largest possible id gives an upper bound on the
        size of the record ``send_message`` would store.
        """
        sizing_key = bytes(KEY_LENGTH_BYTES)
        sealed = [self._seal_attachment(item, sizing_key) for item in attachments]

        def record_bytes(text: str) -> int:
            record = MessageRecord(
                id=_MAX_MESSAGE_ID,
                conversation_id=conversation_id,
                sender_id=caller,
                recipient_id=recipient_id,
                content=self.crypto.encrypt(text, sizing_key).to_json(),
                message_type=message_type,
                timestamp=self.clock(),
                reply_to=reply_to,
                attachments=sealed,
            )
            return self.store.messages.serialized_size(record)

        ceiling = self.store.messages.max_bytes
        if record_bytes(content) <= ceiling:
            return
        # Each 3 plaintext bytes grow the record by 4 base64 characters.
        capacity = max(ceiling - record_bytes(""), 0) // 4 * 3
        raise ValidationError(
            f"Message content exceeds the stored size limit; at most {capacity} bytes "
            "of UTF-8 text fit in one message"
        )

    def send_message(
        self,
        caller: str,
        conversation_id: str,
        recipient_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        reply_to: int | None = None,
        attachments: list[Attachment] | None = None,
        *,
        nonce: str,
        timestamp: int,
    ) -> MessageRecord:
        """Encrypt and store a message from ``caller`` to ``recipient_id``.

        Content too large to fit the message ceiling once encrypted is refused
        first, without touching any state. Otherwise the rate-limit and replay
        bookkeeping commit before the message itself, so a send that fails
        later validation still uses up window budget and its nonce.

        Returns:
            The stored message. ``content`` holds the envelope JSON, not plaintext.

        Raises:
            RateLimitError: If the caller exhausted the send window.
            ReplayError: If the nonce was already used or the timestamp is stale.
            ValidationError: For empty or oversized content, or malformed ids.
            NotFoundError: If the conversation does not exist.
            AuthorizationError: If caller or recipient is not a participant.
        """
        self._check_stored_size(
            caller,
            conversation_id,
            recipient_id,
            sanitize_text(content),
            message_type,
            reply_to,
            attachments or [],
        )
        with self.store.atomic():
            self.rate_limiter.check_and_record(
                caller,
                self.config.message_rate_limit_calls,
                self.config.message_rate_limit_window_ms,
            )
        with self.store.atomic():
            self.replay_guard.validate_nonce(nonce, timestamp)

        validate_text_not_empty(content, "Message content")
        validate_text_length(content, self.config.max_text_length, "Message content")
        sanitized = sanitize_text(content)
        validate_text_not_empty(sanitized, "Message content")

        validate_identity(caller, "caller")
        validate_identity(recipient_id, "recipient")
        validate_conversation_id(conversation_id)

        with self.store.atomic():
            conversation = self._load_conversation(conversation_id)
            self._require_participant(conversation, caller)
            self._require_participant(conversation, recipient_id)

            key = self._derive_key(conversation)
            envelope = self.crypto.encrypt(sanitized, key)
            sealed = [self._seal_attachment(item, key) for item in attachments or []]

            now = self.clock()
            message = MessageRecord(
                id=self.store.next_id(),
                conversation_id=conversation_id,
                sender_id=caller,
                recipient_id=recipient_id,
                content=envelope.to_json(),
                message_type=message_type,
                timestamp=now,
                reply_to=reply_to,
                attachments=sealed,
            )
            self.store.messages.insert(message.id, message)

            conversation.last_message_id = message.id
            conversation.updated_at = now
            self.store.conversations.insert(conversation_id, conversation)

        logger.info(
            "Stored message %d in conversation %s from %s",
            message.id,
            conversation_id,
            caller,
        )
        return message

    def _open_text(self, stored: str, key: bytes) -> str:
        try:
            envelope = Envelope.from_json(stored)
        except CryptoError:
            return stored
        try:
            return self.crypto.decrypt_text(envelope, key)
        except CryptoError:
            logger.warning("Returning undecryptable payload with key %s as stored", envelope.key_id)
            return stored

    def _open_message(self, message: MessageRecord, key: bytes) -> MessageRecord:
        attachments = [
            item.model_copy(update={"encrypted_data": self._open_text(item.encrypted_data, key)})
            if item.encrypted_data
            else item
            for item in message.attachments
        ]
        return message.model_copy(
            update={"content": self._open_text(message.content, key), "attachments": attachments}
        )

    def get_conversation_messages(
        self,
        caller: str,
        conversation_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[MessageRecord]:
        """Return a page of decrypted, non-deleted messages, newest first.

        Any validation, lookup or membership failure returns an empty list, so
        an outsider cannot tell a foreign conversation from an empty one. A
        payload that fails to decrypt is returned as stored.
        """
        try:
            validate_identity(caller, "caller")
            validate_conversation_id(conversation_id)
            conversation = self._load_conversation(conversation_id)
        except MessagingError:
            return []
        if not is_participant(conversation, caller):
            return []

        page_size = self.config.message_page_default if limit is None else limit
        page_size = min(page_size, self.config.message_page_max)
        if page_size <= 0:
            return []

        key = self._derive_key(conversation)
        page = self.store.messages.page_for_conversation(
            conversation_id, limit=page_size, offset=max(offset, 0)
        )
        return [self._open_message(message, key) for message in page]

    def mark_message_read(self, caller: str, message_id: int) -> MessageRecord:
        """Flag a message as read. Only its recipient may do so."""
        validate_identity(caller, "caller")
        with self.store.atomic():
            message = self._load_message(message_id)
            if message.recipient_id != caller:
                logger.warning("Denied %s marking message %d as read", caller, message_id)
                raise AuthorizationError("Unauthorized: Only recipient can mark message as read")
            message.is_read = True
            self.store.messages.insert(message_id, message)
        return message

    def delete_message(self, caller: str, message_id: int) -> MessageRecord:
        """Soft-delete a message. Only its sender may do so."""
        validate_identity(caller, "caller")
        with self.store.atomic():
            message = self._load_message(message_id)
            if message.sender_id != caller:
                logger.warning("Denied %s deleting message %d", caller, message_id)
                raise AuthorizationError("Unauthorized: Only sender can delete message")
            message.is_deleted = True
            self.store.messages.insert(message_id, message)
        logger.info("Message %d deleted by sender", message_id)
        return message

    # --- User keys ------------------------------------------------------------------
    def register_user_key(
        self, caller: str, public_key: str, key_type: KeyType = KeyType.ED25519
    ) -> UserKeyRecord:
        """Store the caller's public key, replacing any previous registration."""
        validate_identity(caller, "caller")
        validate_text_not_empty(public_key, "Public key")
        if key_type is KeyType.ED25519:
            try:
                self.crypto.validate_and_decode_pubkey(public_key)
            except ValueError as err:
                raise ValidationError(str(err)) from err

        record = UserKeyRecord(
            user_id=caller,
            public_key=public_key,
            key_type=key_type,
            created_at=self.clock(),
        )
        with self.store.atomic():
            self.store.user_keys.insert(caller, record)
        logger.info("Registered %s key for %s", key_type.value, caller)
        return record

    def get_user_key(self, identity: str) -> UserKeyRecord | None:
        """Return the key registered by ``identity``, or None."""
        try:
            validate_identity(identity)
        except ValidationError:
            return None
        return self.store.user_keys.get(identity)

    # --- System ---------------------------------------------------------------------
    def health_check(self) -> str:
        """Return a fixed status line."""
        return HEALTH_STATUS

    def get_stats(self) -> dict[str, Any]:
        """Return record counts and the current time."""
        return {
            "total_messages": len(self.store.messages),
            "total_conversations": len(self.store.conversations),
            "total_user_keys": len(self.store.user_keys),
            "timestamp": self.clock(),
        }
