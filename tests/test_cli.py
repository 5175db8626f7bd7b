"""Tests for the command line."""

import io
import locale
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from storefront.cli import (
    add_to_cart,
    browse,
    build_parser,
    build_screen,
    configure_collation,
    format_item,
)
from storefront.config import Settings
from storefront.docstore import RemoteDocument
from storefront.exceptions import DocumentStoreError
from storefront.notifications import NO_INTERNET, ConsoleNotifier, LoggingNotifier


class TestParser:
    """Tests for argument parsing."""

    def test_browse_defaults(self):
        args = build_parser().parse_args(["browse"])
        assert args.command == "browse"
        assert args.query == ""
        assert args.sort == "none"

    def test_browse_with_options(self):
        args = build_parser().parse_args(["browse", "--query", "dune", "--sort", "price"])
        assert args.query == "dune"
        assert args.sort == "price"

    def test_invalid_sort_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["browse", "--sort", "rating"])

    def test_add_to_cart(self):
        args = build_parser().parse_args(["--log-level", "DEBUG", "add-to-cart", "book-1"])
        assert args.item_id == "book-1"
        assert args.log_level == "DEBUG"


class TestCommands:
    """Tests for browse and add-to-cart."""

    def test_format_item(self, catalog_items):
        line = format_item(catalog_items[1])
        assert line == "book-2  Emma  by Jane Austen  [Penguin / Classic]  9"

    @pytest.mark.asyncio
    async def test_browse_prints_projection(self, screen, mock_docstore, remote_documents):
        mock_docstore.list_documents.return_value = remote_documents
        out = io.StringIO()

        status = await browse(screen, "ace", "price", out)

        lines = out.getvalue().splitlines()
        assert status == 0
        assert lines[0].startswith("book-3  Neuromancer")
        assert lines[1].startswith("book-1  Dune")
        assert lines[-1] == "2 of 4 items"
        mock_docstore.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_browse_marks_cached_catalog(
        self, screen, mock_docstore, snapshot_cache, catalog_items
    ):
        await snapshot_cache.save(catalog_items)
        mock_docstore.list_documents.side_effect = DocumentStoreError("offline")
        out = io.StringIO()

        await browse(screen, "", None, out)

        assert out.getvalue().startswith("(offline: showing cached catalog)")

    @pytest.mark.asyncio
    async def test_add_to_cart_command(self, screen, mock_docstore, remote_documents):
        mock_docstore.list_documents.return_value = remote_documents
        mock_docstore.create_document.return_value = RemoteDocument(id="cart-7")
        out = io.StringIO()

        status = await add_to_cart(screen, "book-1", out)

        assert status == 0
        assert out.getvalue().strip() == "Cart document cart-7"

    @pytest.mark.asyncio
    async def test_add_unknown_item_command(self, screen, mock_docstore, remote_documents):
        mock_docstore.list_documents.return_value = remote_documents
        out = io.StringIO()

        status = await add_to_cart(screen, "missing", out)

        assert status == 1
        assert "missing" in out.getvalue()

    @pytest.mark.asyncio
    async def test_failed_cart_write_command(
        self, screen, mock_docstore, remote_documents, notifier
    ):
        mock_docstore.list_documents.return_value = remote_documents
        mock_docstore.create_document.side_effect = DocumentStoreError("denied")

        status = await add_to_cart(screen, "book-1", io.StringIO())

        assert status == 1
        assert notifier.titles == ["Error"]


class TestBuildScreen:
    """Tests for wiring from settings."""

    def test_build_screen_uses_settings(self, tmp_path):
        config = Settings(
            firestore_project_id="shop",
            catalog_collection="Catalog",
            cart_collection="Basket",
            cache_dir=tmp_path,
            catalog_cache_key="catalog",
            fetch_deadline=3.0,
        )

        screen = build_screen(config, ConsoleNotifier(io.StringIO()))

        assert screen.store.collection == "Catalog"
        assert screen.store.fetch_deadline == 3.0
        assert screen.store.cache.key == "catalog"
        assert screen.store.cache.storage.directory == tmp_path
        assert screen.cart_writer.collection == "Basket"
        assert screen.store.client is screen.cart_writer.client
        assert screen.store.client.project_id == "shop"

    def test_console_notifier_prints_alert(self):
        stream = io.StringIO()

        ConsoleNotifier(stream).notify(NO_INTERNET)

        assert stream.getvalue() == (
            "[No Internet] Please check your internet connection and try again. (OK)\n"
        )

    def test_build_screen_defaults_to_logging_notifier(self, tmp_path):
        screen = build_screen(Settings(cache_dir=tmp_path))

        assert isinstance(screen.cart_writer.notifier, LoggingNotifier)
        assert screen.probe.notifier is screen.cart_writer.notifier

    def test_logging_notifier_logs_alert(self):
        with capture_logs() as logs:
            LoggingNotifier().notify(NO_INTERNET)

        assert logs[0]["title"] == "No Internet"
        assert logs[0]["log_level"] == "info"


class TestCollation:
    """Tests for locale setup at startup."""

    def test_uses_user_locale(self):
        with patch("storefront.cli.locale.setlocale") as setlocale:
            configure_collation()

        setlocale.assert_called_once_with(locale.LC_COLLATE, "")

    def test_unavailable_locale_is_tolerated(self):
        with patch("storefront.cli.locale.setlocale", side_effect=locale.Error("bad")):
            configure_collation()
