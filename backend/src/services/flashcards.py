"""Flashcard decks, cards and CSV import."""

from __future__ import annotations

import csv
import io
import logging
import sqlite3
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..models.flashcard import DeckWrite, Flashcard, FlashcardDeck, FlashcardWrite
from .database import DatabaseService, NotFoundError, new_id, require_folder, utcnow_iso
from .tags import load_tags, replace_tags

logger = logging.getLogger(__name__)

DECK_TAGS = "flashcard_deck_tags"


class CSVImportError(ValueError):
    """Raised when CSV content cannot be parsed."""


def parse_csv_cards(content: str) -> List[Tuple[str, str]]:
    """
    Parse ``front,back`` rows.

    Quoted fields may contain commas and doubled quotes. Rows without two
    non-empty columns are skipped; extra columns are ignored.
    """
    cards: List[Tuple[str, str]] = []
    try:
        for row in csv.reader(io.StringIO(content)):
            if len(row) < 2:
                continue
            front, back = row[0].strip(), row[1].strip()
            if front and back:
                cards.append((front, back))
    except csv.Error as exc:
        raise CSVImportError(f"Malformed CSV: {exc}") from exc
    return cards


def _row_to_card(row: sqlite3.Row) -> Flashcard:
    return Flashcard(
        id=row["id"],
        deck_id=row["deck_id"],
        front=row["front"],
        back=row["back"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


DECK_SELECT = """
    SELECT d.*, (SELECT COUNT(*) FROM flashcards c WHERE c.deck_id = d.id) AS card_count
    FROM flashcard_decks d
"""


class FlashcardService:
    """Deck and card CRUD. Cards are owned through their deck."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def _deck_rows_to_models(self, conn: sqlite3.Connection, rows) -> List[FlashcardDeck]:
        tags = load_tags(conn, DECK_TAGS, [row["id"] for row in rows])
        return [
            FlashcardDeck(
                id=row["id"],
                title=row["title"],
                description=row["description"] or "",
                folder_id=row["folder_id"],
                tags=tags[row["id"]],
                card_count=row["card_count"],
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]

    def list_decks(self, user_id: str, *, folder_id: Optional[str] = None) -> List[FlashcardDeck]:
        query = DECK_SELECT + " WHERE d.user_id = ?"
        params: list = [user_id]
        if folder_id:
            query += " AND d.folder_id = ?"
            params.append(folder_id)
        query += " ORDER BY d.created_at DESC"
        conn = self._db.connect()
        try:
            rows = conn.execute(query, params).fetchall()
            return self._deck_rows_to_models(conn, rows)
        finally:
            conn.close()

    def _require_deck(self, conn: sqlite3.Connection, user_id: str, deck_id: str) -> None:
        row = conn.execute(
            "SELECT 1 FROM flashcard_decks WHERE user_id = ? AND id = ?", (user_id, deck_id)
        ).fetchone()
        if not row:
            raise NotFoundError("deck", deck_id)

    def get_deck(self, user_id: str, deck_id: str) -> FlashcardDeck:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                DECK_SELECT + " WHERE d.user_id = ? AND d.id = ?", (user_id, deck_id)
            ).fetchall()
            if not rows:
                raise NotFoundError("deck", deck_id)
            return self._deck_rows_to_models(conn, rows)[0]
        finally:
            conn.close()

    def create_deck(self, user_id: str, payload: DeckWrite) -> FlashcardDeck:
        deck_id = new_id()
        now = utcnow_iso()
        conn = self._db.connect()
        try:
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    "INSERT INTO flashcard_decks (id, user_id, title, description, folder_id, "
                    "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        deck_id,
                        user_id,
                        payload.title.strip(),
                        payload.description,
                        payload.folder_id,
                        now,
                        now,
                    ),
                )
                replace_tags(conn, DECK_TAGS, deck_id, user_id, payload.tag_ids)
            logger.info(f"Created deck {deck_id} for user {user_id}")
        finally:
            conn.close()
        return self.get_deck(user_id, deck_id)

    def update_deck(self, user_id: str, deck_id: str, payload: DeckWrite) -> FlashcardDeck:
        """Replace deck fields; the tag set is replaced as a whole."""
        conn = self._db.connect()
        try:
            self._require_deck(conn, user_id, deck_id)
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    "UPDATE flashcard_decks SET title = ?, description = ?, folder_id = ?, "
                    "updated_at = ? WHERE user_id = ? AND id = ?",
                    (
                        payload.title.strip(),
                        payload.description,
                        payload.folder_id,
                        utcnow_iso(),
                        user_id,
                        deck_id,
                    ),
                )
                replace_tags(conn, DECK_TAGS, deck_id, user_id, payload.tag_ids)
        finally:
            conn.close()
        return self.get_deck(user_id, deck_id)

    def delete_deck(self, user_id: str, deck_id: str) -> None:
        """Delete a deck; its cards go with it."""
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM flashcard_decks WHERE user_id = ? AND id = ?", (user_id, deck_id)
                )
            if cursor.rowcount == 0:
                raise NotFoundError("deck", deck_id)
            logger.info(f"Deleted deck {deck_id} for user {user_id}")
        finally:
            conn.close()

    def list_cards(self, user_id: str, deck_id: str) -> List[Flashcard]:
        """Cards of a deck, oldest first."""
        conn = self._db.connect()
        try:
            self._require_deck(conn, user_id, deck_id)
            rows = conn.execute(
                "SELECT * FROM flashcards WHERE deck_id = ? ORDER BY created_at, rowid",
                (deck_id,),
            ).fetchall()
            return [_row_to_card(row) for row in rows]
        finally:
            conn.close()

    def add_card(self, user_id: str, deck_id: str, payload: FlashcardWrite) -> Flashcard:
        cards = self.add_cards(user_id, deck_id, [(payload.front, payload.back)])
        return cards[0]

    def add_cards(
        self, user_id: str, deck_id: str, pairs: Iterable[Tuple[str, str]]
    ) -> List[Flashcard]:
        """Insert several cards in one transaction and touch the deck."""
        now = utcnow_iso()
        rows = [(new_id(), deck_id, front, back, now, now) for front, back in pairs]
        conn = self._db.connect()
        try:
            self._require_deck(conn, user_id, deck_id)
            if rows:
                with conn:
                    conn.executemany(
                        "INSERT INTO flashcards (id, deck_id, front, back, created_at, updated_at) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        rows,
                    )
                    conn.execute(
                        "UPDATE flashcard_decks SET updated_at = ? WHERE id = ?", (now, deck_id)
                    )
        finally:
            conn.close()
        created_at = datetime.fromisoformat(now)
        return [
            Flashcard(
                id=card_id,
                deck_id=deck_id,
                front=front,
                back=back,
                created_at=created_at,
                updated_at=created_at,
            )
            for card_id, _, front, back, _, _ in rows
        ]

    def _fetch_card(self, conn: sqlite3.Connection, user_id: str, card_id: str) -> sqlite3.Row:
        row = conn.execute(
            """
            SELECT c.* FROM flashcards c JOIN flashcard_decks d ON d.id = c.deck_id
            WHERE c.id = ? AND d.user_id = ?
            """,
            (card_id, user_id),
        ).fetchone()
        if not row:
            raise NotFoundError("flashcard", card_id)
        return row

    def update_card(self, user_id: str, card_id: str, payload: FlashcardWrite) -> Flashcard:
        conn = self._db.connect()
        try:
            self._fetch_card(conn, user_id, card_id)
            with conn:
                conn.execute(
                    "UPDATE flashcards SET front = ?, back = ?, updated_at = ? WHERE id = ?",
                    (payload.front, payload.back, utcnow_iso(), card_id),
                )
            return _row_to_card(self._fetch_card(conn, user_id, card_id))
        finally:
            conn.close()

    def delete_card(self, user_id: str, card_id: str) -> None:
        conn = self._db.connect()
        try:
            self._fetch_card(conn, user_id, card_id)
            with conn:
                conn.execute("DELETE FROM flashcards WHERE id = ?", (card_id,))
        finally:
            conn.close()

    def import_csv(self, user_id: str, deck_id: str, content: str) -> int:
        """Import ``front,back`` rows into a deck. Returns the number imported."""
        pairs = parse_csv_cards(content)
        created = self.add_cards(user_id, deck_id, pairs)
        logger.info(f"Imported {len(created)} card(s) into deck {deck_id}")
        return len(created)


_flashcard_service: Optional[FlashcardService] = None


def get_flashcard_service() -> FlashcardService:
    """Get or create the flashcard service singleton."""
    global _flashcard_service
    if _flashcard_service is None:
        _flashcard_service = FlashcardService()
    return _flashcard_service


__all__ = [
    "CSVImportError",
    "FlashcardService",
    "get_flashcard_service",
    "parse_csv_cards",
]
