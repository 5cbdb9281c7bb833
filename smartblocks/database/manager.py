"""
Database manager for Smart Blocks.

This module handles all database operations using DuckDB: sidecar metadata
storage, processed-block change tracking by content hash, and the batch job
log.
"""

import duckdb
import json
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from ..models import Block, BlockProcessingJob, utc_now


def _naive_utc(value: datetime) -> datetime:
    """DuckDB TIMESTAMP columns hold naive UTC values."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class DatabaseManager:
    """
    Manages the DuckDB database for sidecar metadata and processing state.
    """

    def __init__(self, db_path: str = "smartblocks.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file (":memory:" for tests)
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def _require_connection(self):
        if not self.connection:
            raise RuntimeError("Database connection not established")
        return self.connection

    def initialize_database(self):
        """
        Create all necessary tables if they don't exist.
        """
        connection = self._require_connection()

        connection.execute("""
            CREATE TABLE IF NOT EXISTS sidecar_documents (
                document_id VARCHAR PRIMARY KEY,
                version VARCHAR NOT NULL,
                last_updated VARCHAR NOT NULL,
                document_hash VARCHAR
            )
        """)

        connection.execute("""
            CREATE TABLE IF NOT EXISTS sidecar_blocks (
                document_id VARCHAR NOT NULL,
                block_id VARCHAR NOT NULL,
                metadata VARCHAR NOT NULL,
                PRIMARY KEY (document_id, block_id)
            )
        """)

        connection.execute("""
            CREATE TABLE IF NOT EXISTS processed_blocks (
                document_id VARCHAR NOT NULL,
                block_id VARCHAR NOT NULL,
                content_hash VARCHAR NOT NULL,
                processed_at TIMESTAMP NOT NULL,
                PRIMARY KEY (document_id, block_id)
            )
        """)

        connection.execute("""
            CREATE TABLE IF NOT EXISTS processing_jobs (
                job_id VARCHAR PRIMARY KEY,
                document_id VARCHAR NOT NULL,
                block_id VARCHAR NOT NULL,
                job_type VARCHAR NOT NULL,
                status VARCHAR NOT NULL,
                result VARCHAR,
                error VARCHAR,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)

    # Sidecar metadata

    def read_sidecar(self, document_id: str) -> Optional[Dict[str, Any]]:
        """
        Read a document's sidecar in its JSON shape.

        Args:
            document_id: The document to read

        Returns:
            The sidecar payload, or None if the document has none
        """
        connection = self._require_connection()

        header = connection.execute("""
            SELECT version, last_updated, document_hash
            FROM sidecar_documents
            WHERE document_id = ?
        """, [document_id]).fetchone()

        if not header:
            return None

        rows = connection.execute("""
            SELECT block_id, metadata FROM sidecar_blocks WHERE document_id = ?
        """, [document_id]).fetchall()

        payload: Dict[str, Any] = {
            "version": header[0],
            "lastUpdated": header[1],
            "blocks": {row[0]: json.loads(row[1]) for row in rows}
        }
        if header[2]:
            payload["documentHash"] = header[2]
        return payload

    def write_sidecar(self, document_id: str, payload: Dict[str, Any]) -> None:
        """
        Replace a document's sidecar with the given JSON payload.

        Args:
            document_id: The document to write
            payload: Sidecar in its JSON shape
        """
        connection = self._require_connection()

        connection.execute("BEGIN TRANSACTION")
        try:
            connection.execute("""
                INSERT OR REPLACE INTO sidecar_documents (document_id, version, last_updated, document_hash)
                VALUES (?, ?, ?, ?)
            """, [
                document_id,
                payload.get("version", "1.0.0"),
                payload["lastUpdated"],
                payload.get("documentHash")
            ])

            connection.execute("DELETE FROM sidecar_blocks WHERE document_id = ?", [document_id])
            for block_id, metadata in payload.get("blocks", {}).items():
                connection.execute("""
                    INSERT INTO sidecar_blocks (document_id, block_id, metadata)
                    VALUES (?, ?, ?)
                """, [document_id, block_id, json.dumps(metadata, sort_keys=True)])

            connection.execute("COMMIT")
        except Exception:
            connection.execute("ROLLBACK")
            raise

    # Processed block tracking

    def record_processed_block(self, document_id: str, block: Block) -> None:
        """
        Record that a block has been processed at its current content hash.

        Args:
            document_id: The document the block belongs to
            block: The processed block
        """
        connection = self._require_connection()

        connection.execute("""
            INSERT OR REPLACE INTO processed_blocks (document_id, block_id, content_hash, processed_at)
            VALUES (?, ?, ?, ?)
        """, [document_id, block.id, block.content_hash or "", _naive_utc(utc_now())])

    def block_needs_processing(self, document_id: str, block: Block) -> bool:
        """
        Check if a block needs processing (new or changed).

        Args:
            document_id: The document the block belongs to
            block: The block to check

        Returns:
            True if the block was never processed or its content hash changed
        """
        connection = self._require_connection()

        result = connection.execute("""
            SELECT content_hash FROM processed_blocks WHERE document_id = ? AND block_id = ?
        """, [document_id, block.id]).fetchone()

        if not result:
            # Block has never been processed
            return True

        return result[0] != block.content_hash

    # Job log

    def log_job(self, document_id: str, job: BlockProcessingJob) -> None:
        """
        Store the current state of a processing job.

        Args:
            document_id: The document the job's block belongs to
            job: The job to store
        """
        connection = self._require_connection()

        connection.execute("""
            INSERT OR REPLACE INTO processing_jobs (
                job_id, document_id, block_id, job_type, status, result, error, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            job.id,
            document_id,
            job.block_id,
            job.type,
            job.status,
            json.dumps(job.result) if job.result is not None else None,
            job.error,
            _naive_utc(job.created_at),
            _naive_utc(job.updated_at)
        ])

    def get_jobs(
        self,
        document_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Retrieve logged jobs, newest first.

        Args:
            document_id: Filter by document (optional)
            status: Filter by job status (optional)
            limit: Limit number of results

        Returns:
            List of job records
        """
        connection = self._require_connection()

        query = """
            SELECT job_id, document_id, block_id, job_type, status, result, error, created_at, updated_at
            FROM processing_jobs
            WHERE 1=1
        """
        params: List[Any] = []

        if document_id:
            query += " AND document_id = ?"
            params.append(document_id)

        if status:
            query += " AND status = ?"
            params.append(status)

        query += " ORDER BY updated_at DESC"

        if limit:
            query += " LIMIT ?"
            params.append(int(limit))

        results = connection.execute(query, params).fetchall()

        return [
            {
                "job_id": row[0],
                "document_id": row[1],
                "block_id": row[2],
                "job_type": row[3],
                "status": row[4],
                "result": json.loads(row[5]) if row[5] is not None else None,
                "error": row[6],
                "created_at": row[7],
                "updated_at": row[8]
            }
            for row in results
        ]

    def forget_document(self, document_id: str) -> None:
        """Delete everything stored for a document."""
        connection = self._require_connection()
        for table in ("sidecar_documents", "sidecar_blocks", "processed_blocks", "processing_jobs"):
            connection.execute(f"DELETE FROM {table} WHERE document_id = ?", [document_id])
        logging.info(f"Removed stored state for document {document_id}")
