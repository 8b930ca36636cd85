import pytest

from backend.src.models.flashcard import DeckWrite
from backend.src.models.folder import FolderCreate, FolderUpdate
from backend.src.models.mindmap import MindMapWrite
from backend.src.models.note import CornellNoteWrite
from backend.src.services.database import NotFoundError
from backend.src.services.flashcards import FlashcardService
from backend.src.services.folders import FolderService
from backend.src.services.mindmaps import MindMapService
from backend.src.services.notes import NoteService

USER_ID = "user-123"


@pytest.fixture
def folders(db) -> FolderService:
    return FolderService(db)


def test_create_and_list_levels(folders: FolderService) -> None:
    biology = folders.create_folder(USER_ID, FolderCreate(name=" Biology ", color="green"))
    anatomy = folders.create_folder(USER_ID, FolderCreate(name="Anatomy", parent_id=biology.id))
    folders.create_folder("someone-else", FolderCreate(name="Private"))

    assert biology.name == "Biology"
    assert [f.name for f in folders.list_folders(USER_ID)] == ["Anatomy", "Biology"]
    assert [f.id for f in folders.list_folders(USER_ID, None)] == [biology.id]
    assert [f.id for f in folders.list_folders(USER_ID, biology.id)] == [anatomy.id]


def test_create_under_unknown_parent_fails(folders: FolderService) -> None:
    with pytest.raises(NotFoundError):
        folders.create_folder(USER_ID, FolderCreate(name="Orphan", parent_id="missing"))


def test_cannot_move_folder_inside_itself(folders: FolderService) -> None:
    root = folders.create_folder(USER_ID, FolderCreate(name="Root"))
    child = folders.create_folder(USER_ID, FolderCreate(name="Child", parent_id=root.id))
    grandchild = folders.create_folder(USER_ID, FolderCreate(name="Grandchild", parent_id=child.id))

    for target in (root.id, child.id, grandchild.id):
        with pytest.raises(ValueError):
            folders.update_folder(USER_ID, root.id, FolderUpdate(parent_id=target))


def test_move_to_root_and_rename(folders: FolderService) -> None:
    root = folders.create_folder(USER_ID, FolderCreate(name="Root"))
    child = folders.create_folder(USER_ID, FolderCreate(name="Child", parent_id=root.id))

    moved = folders.update_folder(USER_ID, child.id, FolderUpdate(parent_id="", name="Top"))

    assert moved.parent_id is None
    assert moved.name == "Top"
    assert folders.get_folder(USER_ID, child.id).parent_id is None


def test_delete_removes_subtree_but_keeps_content(db, folders: FolderService) -> None:
    notes = NoteService(db)
    root = folders.create_folder(USER_ID, FolderCreate(name="Root"))
    child = folders.create_folder(USER_ID, FolderCreate(name="Child", parent_id=root.id))
    note = notes.create_note(USER_ID, CornellNoteWrite(title="Filed", folder_id=child.id))

    removed = folders.delete_folder(USER_ID, root.id)

    assert removed == 2
    assert folders.list_folders(USER_ID) == []
    assert notes.get_note(USER_ID, note.id).folder_id is None


def test_contents_lists_subfolders_and_items(db, folders: FolderService) -> None:
    biology = folders.create_folder(USER_ID, FolderCreate(name="Biology"))
    folders.create_folder(USER_ID, FolderCreate(name="Cells", parent_id=biology.id))
    NoteService(db).create_note(USER_ID, CornellNoteWrite(title="Mitosis", folder_id=biology.id))
    MindMapService(db).create_mind_map(
        USER_ID, MindMapWrite(central_concept="Cell cycle", folder_id=biology.id)
    )
    FlashcardService(db).create_deck(USER_ID, DeckWrite(title="Cell deck", folder_id=biology.id))

    contents = folders.get_contents(USER_ID, biology.id)

    assert contents.folder.id == biology.id
    assert [f.name for f in contents.subfolders] == ["Cells"]
    assert sorted((item.kind, item.title) for item in contents.items) == [
        ("cornell", "Mitosis"),
        ("deck", "Cell deck"),
        ("mindmap", "Cell cycle"),
    ]


def test_items_cannot_reference_unknown_folder(db) -> None:
    with pytest.raises(ValueError, match="Unknown folder"):
        NoteService(db).create_note(USER_ID, CornellNoteWrite(title="Lost", folder_id="missing"))
