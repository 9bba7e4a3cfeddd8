#!/usr/bin/env python3
"""
Invoice Folder Watcher - Automatic Parsing

Watches a folder for OCR text exports of invoices (.txt), parses each one into
catalog-matched line items and files it by parsing confidence.

Usage:
    python invoice_watcher.py --watch-folder ./invoices-incoming
    python invoice_watcher.py --once --api-url http://127.0.0.1:8000
"""

import argparse
import json
import time
from datetime import datetime
from pathlib import Path

import requests
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ftc_invoice.services.invoice_parser import parse_invoice_text
from ftc_invoice.services.suggestions import generate_inventory_suggestions

CONFIDENCE_THRESHOLD = 0.6
TEXT_SUFFIXES = {".txt"}


class InvoiceHandler(FileSystemEventHandler):
    """Handles new invoice text file events"""

    def __init__(self, watch_folder, processed_folder, review_folder,
                 threshold=CONFIDENCE_THRESHOLD, api_url=None):
        self.watch_folder = Path(watch_folder)
        self.processed_folder = Path(processed_folder)
        self.review_folder = Path(review_folder)
        self.threshold = threshold
        self.api_url = api_url.rstrip("/") if api_url else None
        self.processed_files = set()

        # Create folders if they don't exist
        self.processed_folder.mkdir(parents=True, exist_ok=True)
        self.review_folder.mkdir(parents=True, exist_ok=True)

    def on_created(self, event):
        """Called when a file is created in the watched folder"""
        if event.is_directory:
            return

        file_path = Path(event.src_path)

        if file_path.suffix.lower() not in TEXT_SUFFIXES:
            return

        # Avoid processing the same file multiple times
        if file_path in self.processed_files:
            return

        # Small delay to ensure file is fully written
        time.sleep(1)

        # Check if file still exists (might have been moved)
        if not file_path.exists():
            return

        self.process_invoice(file_path)

    def process_existing(self):
        """Process files already sitting in the watch folder"""
        for file_path in sorted(self.watch_folder.iterdir()):
            if file_path.is_file() and file_path.suffix.lower() in TEXT_SUFFIXES:
                self.process_invoice(file_path)

    def parse(self, file_path: Path) -> dict:
        """Parse locally, or through the API when --api-url is set"""
        if self.api_url:
            with open(file_path, "rb") as f:
                files = {"file": (file_path.name, f, "text/plain")}
                response = requests.post(f"{self.api_url}/invoices/parse-file", files=files, timeout=60)
            if response.status_code != 200:
                raise RuntimeError(f"API returned {response.status_code}: {response.text}")
            return response.json()

        parsed = parse_invoice_text(file_path.read_text(encoding="utf-8"))
        suggestions = generate_inventory_suggestions(parsed.items)
        return {"invoice": parsed.model_dump(), "suggestions": suggestions.suggestions}

    def process_invoice(self, file_path: Path):
        """Parse one invoice file and move it to processed/review"""
        self.processed_files.add(file_path)

        print("\n" + "=" * 70)
        print(f"📄 NEW INVOICE DETECTED: {file_path.name}")
        print("=" * 70)
        print(f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print(f"Size: {file_path.stat().st_size:,} bytes")

        try:
            data = self.parse(file_path)
        except requests.exceptions.Timeout:
            print("⏱️  Request timed out")
            return self.handle_error(file_path, "Timeout")
        except Exception as e:
            print(f"❌ Error: {str(e)}")
            return self.handle_error(file_path, str(e))

        return self.handle_success(file_path, data)

    def handle_success(self, file_path: Path, data: dict) -> Path:
        invoice = data["invoice"]
        confidence = invoice["parsing_confidence"]

        print()
        print("📊 PARSING RESULTS:")
        print(f"   Vendor: {invoice['vendor']}")
        print(f"   Invoice #: {invoice['invoice_number']}")
        print(f"   Date: {invoice['date']}")
        print(f"   Total: {invoice['total_amount']}")
        print(f"   Items: {len(invoice['items'])}")
        print(f"   Confidence: {confidence:.1%}")
        for suggestion in data.get("suggestions", []):
            print(f"   💡 {suggestion}")
        print()

        if confidence >= self.threshold:
            status = "processed"
            destination = self.processed_folder
            print("✅ RESULT: READY FOR INVENTORY")
        else:
            status = "needs_review"
            destination = self.review_folder
            print("📝 RESULT: NEEDS MANUAL REVIEW")

        dest_path = destination / file_path.name
        file_path.rename(dest_path)
        print(f"\n📁 Moved to: {dest_path}")

        self.log_processing(file_path.name, status, data, dest_path)
        print("=" * 70)
        return dest_path

    def handle_error(self, file_path: Path, error_msg: str) -> Path:
        print(f"\n❌ Processing failed: {error_msg}")

        # Move to review for manual handling
        dest_path = self.review_folder / f"ERROR_{file_path.name}"
        file_path.rename(dest_path)
        print(f"📁 Moved to: {dest_path}")

        self.log_processing(file_path.name, "error", {"error": error_msg}, dest_path)
        print("=" * 70)
        return dest_path

    def log_processing(self, filename: str, status: str, data: dict, dest_path: Path):
        """Append the outcome to processing_log.json next to the watch folder"""
        log_file = self.watch_folder.parent / "processing_log.json"

        if log_file.exists():
            with open(log_file, "r") as f:
                log_data = json.load(f)
        else:
            log_data = []

        log_data.append({
            "timestamp": datetime.now().isoformat(),
            "filename": filename,
            "status": status,
            "result": data,
            "destination": str(dest_path)
        })

        with open(log_file, "w") as f:
            json.dump(log_data, f, indent=2)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Watch a folder for OCR'd invoice text and parse it automatically"
    )
    parser.add_argument(
        "--watch-folder",
        default="./invoices-incoming",
        help="Folder to watch for new invoice text files (default: ./invoices-incoming)"
    )
    parser.add_argument(
        "--processed-folder",
        default="./invoices-processed",
        help="Folder for confidently parsed invoices (default: ./invoices-processed)"
    )
    parser.add_argument(
        "--review-folder",
        default="./invoices-review",
        help="Folder for invoices needing manual review (default: ./invoices-review)"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=CONFIDENCE_THRESHOLD,
        help=f"Parsing confidence needed to skip review (default: {CONFIDENCE_THRESHOLD})"
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Parse through a running API instead of in-process (e.g. http://127.0.0.1:8000)"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process files already in the watch folder and exit"
    )

    args = parser.parse_args(argv)

    watch_folder = Path(args.watch_folder)
    watch_folder.mkdir(parents=True, exist_ok=True)

    event_handler = InvoiceHandler(
        args.watch_folder,
        args.processed_folder,
        args.review_folder,
        threshold=args.threshold,
        api_url=args.api_url
    )

    if args.once:
        event_handler.process_existing()
        return 0

    observer = Observer()
    observer.schedule(event_handler, str(watch_folder), recursive=False)
    observer.start()

    print("=" * 70)
    print("🔍 INVOICE WATCHER - AUTOMATIC PARSING")
    print("=" * 70)
    print(f"Watching: {watch_folder.absolute()}")
    print(f"Ready → {Path(args.processed_folder).absolute()}")
    print(f"Needs Review → {Path(args.review_folder).absolute()}")
    print(f"Parser: {args.api_url or 'in-process'}")
    print(f"Confidence Threshold: {args.threshold}")
    print()
    print("💡 Drop .txt invoice exports into the watch folder to parse them")
    print("Press Ctrl+C to stop")
    print("=" * 70)
    print()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\n👋 Stopping watcher...")
        observer.stop()

    observer.join()
    print("✅ Watcher stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
