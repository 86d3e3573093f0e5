"""
NfoPipeline for Nfoarr

This module implements the batch driver that acquires NFO payloads for
indexed releases, classifies them and records the outcome in each release's
``nfostatus``.

Pipeline Pass:
    1. Query eligible releases (status within [floor, UNPROCESSED], size
       within the window, optional group / guid-prefix scope), ordered by
       status ascending then newest first
    2. For each release: fetch candidate bytes through the NfoFetcher
       - nothing fetched, fetch error or probe error -> one retry consumed
    3. Classify the bytes
       - not an NFO -> NONFO
       - NFO -> payload stored (never overwritten), FOUND, downstream
         extractors notified
    4. Quarantine sweep: releases below the floor become FAILED and lose any
       NULL payload row
    5. Return the number of NFOs found

Idempotence Strategy:
    - FOUND, NONFO and FAILED releases are outside the eligibility range, so a
      second pass over unchanged data finds nothing to do
    - Each transition is committed on its own; an interrupted pass keeps what
      it already wrote and the next pass resumes from the eligibility query
    - Payload rows are insert-if-absent

Scale-out:
    Several pipelines may run at once on disjoint guid prefixes
    (see nfoarr.processors.partitioning).
"""

import codecs
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..adapters.extractors import (
    MovieExtractor,
    ShowExtractor,
    ContentScanner,
    NullMovieExtractor,
    NullShowExtractor,
    NullContentScanner,
)
from ..adapters.fetcher_adapter import NfoFetcher
from ..adapters.release_store import ReleaseStore, SqlAlchemyReleaseStore, EligibilityFilter, ReleaseSummary
from ..config import Config
from ..models.release import NfoStatus
from ..models.settings import Settings
from ..services.exceptions import NfoFetchError, ClassificationError, PersistenceError
from ..services.nfo_classifier import NfoClassifier, NfoVerdict, get_default_classifier
from ..services.retry_policy import RetryConfig, SizeWindow, decrement
from ..services.structured_logging import CorrelationContext, generate_batch_id

logger = logging.getLogger(__name__)


# UTF-32 marks first: the UTF-32-LE BOM begins with the UTF-16-LE one.
_BOM_ENCODINGS = (
    (codecs.BOM_UTF32_LE, 'utf-32'),
    (codecs.BOM_UTF32_BE, 'utf-32'),
    (codecs.BOM_UTF16_LE, 'utf-16'),
    (codecs.BOM_UTF16_BE, 'utf-16'),
    (codecs.BOM_UTF8, 'utf-8-sig'),
)


def decode_nfo_text(blob: bytes) -> str:
    """
    Decode NFO bytes for the downstream extractors.

    A byte order mark selects the Unicode codec; otherwise UTF-8 is tried,
    falling back to CP437 (the usual NFO codepage).
    """
    for bom, encoding in _BOM_ENCODINGS:
        if blob.startswith(bom):
            try:
                return blob.decode(encoding)
            except UnicodeDecodeError:
                break

    try:
        return blob.decode('utf-8')
    except UnicodeDecodeError:
        return blob.decode('cp437')


class NfoPipeline:
    """
    NFO acquisition and classification pipeline.

    All collaborators are injected; configuration is read once into value
    objects at construction time.

    Example:
        >>> from nfoarr.database import SessionLocal
        >>>
        >>> db = SessionLocal()
        >>> pipeline = NfoPipeline.from_settings(db, fetcher=my_fetcher)
        >>> found = pipeline.process_batch(guid_prefix='a')
        >>>
        >>> # NFO recovered from an unpacked archive
        >>> pipeline.ingest_alternate(nfo_bytes, release)
    """

    def __init__(
        self,
        store: ReleaseStore,
        fetcher: NfoFetcher,
        classifier: NfoClassifier,
        retry_config: Optional[RetryConfig] = None,
        size_window: Optional[SizeWindow] = None,
        movie_extractor: Optional[MovieExtractor] = None,
        show_extractor: Optional[ShowExtractor] = None,
        content_scanner: Optional[ContentScanner] = None,
        batch_limit: int = Config.DEFAULT_MAX_NFO_PROCESSED
    ):
        """
        Initialize NfoPipeline.

        Args:
            store: Persistence for release status and payloads
            fetcher: Message fetcher returning candidate NFO bytes
            classifier: NFO/binary classifier
            retry_config: Retry configuration (default: RetryConfig())
            size_window: Release size bounds (default: unbounded)
            movie_extractor: Receives the text of each stored NFO
            show_extractor: Runs TV identifier scans after each stored NFO
            content_scanner: Scans incomplete releases on alternate ingest
            batch_limit: Releases examined per batch
        """
        self.store = store
        self.fetcher = fetcher
        self.classifier = classifier
        self.retry_config = retry_config or RetryConfig()
        self.size_window = size_window or SizeWindow()
        self.movie_extractor = movie_extractor or NullMovieExtractor()
        self.show_extractor = show_extractor or NullShowExtractor()
        self.content_scanner = content_scanner or NullContentScanner()
        self.batch_limit = batch_limit

    @classmethod
    def from_settings(
        cls,
        db: Session,
        fetcher: NfoFetcher,
        classifier: Optional[NfoClassifier] = None,
        **collaborators
    ) -> 'NfoPipeline':
        """
        Build a pipeline from the database Settings row.

        Args:
            db: SQLAlchemy database session
            fetcher: Message fetcher
            classifier: Classifier override (default: ``file`` tool + MediaInfo)
            **collaborators: movie_extractor, show_extractor, content_scanner

        Returns:
            NfoPipeline instance
        """
        settings = Settings.get_settings(db)
        return cls(
            store=SqlAlchemyReleaseStore(db),
            fetcher=fetcher,
            classifier=classifier or get_default_classifier(settings.tmp_path),
            retry_config=RetryConfig.from_settings(settings),
            size_window=SizeWindow.from_settings(settings),
            batch_limit=settings.max_nfo_processed or Config.DEFAULT_MAX_NFO_PROCESSED,
            **collaborators
        )

    def build_filter(self, group_id: Optional[int] = None, guid_prefix: Optional[str] = None) -> EligibilityFilter:
        """Eligibility scope for this pipeline's configuration."""
        return EligibilityFilter(
            floor=self.retry_config.floor,
            size_window=self.size_window,
            group_id=group_id,
            guid_prefix=guid_prefix or None,
        )

    # ===========================================================================
    # Batch processing
    # ===========================================================================

    def process_batch(
        self,
        group_id: Optional[int] = None,
        guid_prefix: Optional[str] = None,
        batch_limit: Optional[int] = None,
        extract_show_ids: bool = True,
        extract_movie_ids: bool = True
    ) -> int:
        """
        Run one pass over eligible releases, then the quarantine sweep.

        Args:
            group_id: Restrict to one group
            guid_prefix: Restrict to guids starting with this prefix (sharding)
            batch_limit: Releases examined this pass (default: self.batch_limit)
            extract_show_ids: Trigger a TV identifier scan after each stored NFO
            extract_movie_ids: Ask the movie extractor to look up IMDb ids

        Returns:
            Number of NFOs found and stored this pass

        Raises:
            PersistenceError: If the release store fails; transitions committed
                before the failure are kept
        """
        filters = self.build_filter(group_id, guid_prefix)
        limit = batch_limit if batch_limit is not None else self.batch_limit
        scope = (f"[{guid_prefix}] " if guid_prefix else "") + (f"[{group_id}] " if group_id is not None else "")

        with CorrelationContext(batch_id=generate_batch_id(), guid_prefix=guid_prefix, group_id=group_id):
            releases = self.store.query_eligible(filters, limit)

            if releases:
                logger.info(f"{scope}Processing {len(releases)} NFO(s), batch limit {limit}")
                if logger.isEnabledFor(logging.DEBUG):
                    counts = self.store.count_by_status(filters)
                    available = ", ".join(f"{status} = {count}" for status, count in counts.items())
                    logger.debug(f"{scope}Available to process: {available}")

            found = 0
            for release in releases:
                with CorrelationContext(release_id=release.id):
                    if self._process_release(release, group_id, guid_prefix, extract_show_ids, extract_movie_ids):
                        found += 1

            self.sweep_quarantine(filters)

            if found:
                logger.info(f"✓ {scope}{found} NFO file(s) found/processed")

        return found

    def _process_release(
        self,
        release: ReleaseSummary,
        group_id: Optional[int],
        guid_prefix: Optional[str],
        extract_show_ids: bool,
        extract_movie_ids: bool
    ) -> bool:
        """Fetch, classify and record one release. Returns True when an NFO was stored."""
        group_name = self.store.get_group_name(release.groups_id)

        try:
            blob = self.fetcher.fetch(release.guid, release.id, release.groups_id, group_name)
            if blob is None:
                self._record_failure(release, "no NFO candidate")
                return False

            verdict = self.classifier.classify(blob, release.guid)
        except (NfoFetchError, ClassificationError) as e:
            self._record_failure(release, str(e))
            return False
        except PersistenceError:
            raise
        except Exception as e:
            logger.warning(f"⚠ Release {release.id}: unexpected fetch error {type(e).__name__}: {e}")
            self._record_failure(release, f"{type(e).__name__}: {e}")
            return False

        if verdict is NfoVerdict.NOT_NFO:
            self.store.set_status(release.id, NfoStatus.NONFO)
            logger.debug(f"- Release {release.id}: fetched file is not an NFO")
            return False

        self._store_nfo(release.id, blob)
        logger.debug(f"+ Release {release.id}: NFO stored")

        text = decode_nfo_text(blob)
        self._notify_movie_extractor(text, release.id, extract_movie_ids)
        if extract_show_ids:
            self._notify_show_extractor(group_id, guid_prefix)

        return True

    def _record_failure(self, release: ReleaseSummary, reason: str) -> None:
        """Consume one retry; reaching FAILED also purges any NULL payload row."""
        new_status = decrement(release.nfostatus)

        if new_status == NfoStatus.FAILED:
            self.store.delete_null_payload(release.id)

        self.store.set_status(release.id, new_status)
        logger.debug(f"f Release {release.id}: fetch failed ({reason}), status {release.nfostatus} -> {new_status}")

    def _store_nfo(self, release_id: int, blob: bytes) -> None:
        self.store.insert_payload_if_absent(release_id, blob)
        self.store.set_status(release_id, NfoStatus.FOUND)

    def _notify_movie_extractor(self, text: str, release_id: int, extract_imdb_ids: bool) -> None:
        try:
            self.movie_extractor.on_nfo_text(text, release_id, extract_imdb_ids)
        except Exception as e:
            logger.warning(f"⚠ Movie extraction failed for release {release_id}: {type(e).__name__}: {e}")

    def _notify_show_extractor(self, group_id: Optional[int], guid_prefix: Optional[str]) -> None:
        try:
            self.show_extractor.on_demand_scan(group_id, guid_prefix, True)
        except Exception as e:
            logger.warning(f"⚠ TV identifier scan failed: {type(e).__name__}: {e}")

    # ===========================================================================
    # Quarantine
    # ===========================================================================

    def sweep_quarantine(self, filters: Optional[EligibilityFilter] = None) -> int:
        """
        Demote releases that fell below the retry floor to FAILED.

        Any payload row with a NULL body is deleted first. Runs after every
        batch regardless of how many releases were touched.

        Args:
            filters: Group / guid-prefix scope (default: everything)

        Returns:
            Number of releases quarantined
        """
        filters = filters or self.build_filter()
        release_ids = self.store.query_quarantine_candidates(filters)

        for release_id in release_ids:
            self.store.delete_null_payload(release_id)
            self.store.set_status(release_id, NfoStatus.FAILED)

        if release_ids:
            logger.info(f"Quarantined {len(release_ids)} release(s) after {self.retry_config.max_retries} NFO retries")

        return len(release_ids)

    # ===========================================================================
    # Alternate sources
    # ===========================================================================

    def ingest_alternate(self, blob: Optional[bytes], release: Any, fetcher_context: Any = None) -> bool:
        """
        Store an NFO obtained outside the fetcher (archive contents, pre-database).

        Args:
            blob: Candidate NFO bytes
            release: Object with ``id``, ``guid``, ``groups_id`` and optionally
                ``completion`` (a Release row or ReleaseSummary)
            fetcher_context: Passed to the content scanner (e.g. an NNTP connection)

        Returns:
            True if the NFO was stored, False if the release reference is
            invalid or the bytes are not an NFO (nothing is written then)
        """
        release_id = getattr(release, 'id', None) if release is not None else None
        if not isinstance(release_id, int) or release_id <= 0:
            logger.warning(f"Ignoring alternate NFO for invalid release reference: {release_id!r}")
            return False

        try:
            verdict = self.classifier.classify(blob, release.guid)
        except ClassificationError as e:
            logger.warning(f"⚠ Alternate NFO for release {release_id} could not be classified: {e}")
            return False

        if verdict is NfoVerdict.NOT_NFO:
            logger.debug(f"Alternate file for release {release_id} is not an NFO")
            return False

        with CorrelationContext(release_id=release_id):
            self._store_nfo(release_id, blob)
            logger.info(f"✓ Alternate NFO stored for release {release_id}")

            self._notify_movie_extractor(decode_nfo_text(blob), release_id, True)

            if not getattr(release, 'completion', None):
                try:
                    self.content_scanner.scan_release(release.guid, release_id, release.groups_id, fetcher_context)
                except Exception as e:
                    logger.warning(f"⚠ Content scan failed for release {release_id}: {type(e).__name__}: {e}")

        return True


def run_nfo_batch(
    fetcher: NfoFetcher,
    group_id: Optional[int] = None,
    guid_prefix: Optional[str] = None,
    extract_show_ids: bool = True,
    extract_movie_ids: bool = True,
    **collaborators
) -> int:
    """
    Run one NFO batch with its own database session.

    Convenience function for schedulers and partition workers.

    Args:
        fetcher: Message fetcher
        group_id: Restrict to one group
        guid_prefix: Restrict to guids starting with this prefix
        extract_show_ids: Trigger TV identifier scans
        extract_movie_ids: Ask for IMDb id lookups
        **collaborators: classifier, movie_extractor, show_extractor, content_scanner

    Returns:
        Number of NFOs found
    """
    from nfoarr.database import SessionLocal

    db = SessionLocal()
    try:
        pipeline = NfoPipeline.from_settings(db, fetcher, **collaborators)
        return pipeline.process_batch(
            group_id=group_id,
            guid_prefix=guid_prefix,
            extract_show_ids=extract_show_ids,
            extract_movie_ids=extract_movie_ids,
        )
    except Exception as e:
        logger.error(f"NFO batch failed ({guid_prefix or 'all'}): {type(e).__name__}: {e}")
        raise
    finally:
        db.close()
