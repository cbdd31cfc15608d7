"""CLI entry point and ingestion pipeline."""

import asyncio
import logging
import sys

import click

from .config import Config
from .extraction.parser import PastedUrlParser
from .extraction.social import SocialPostExtractor
from .fetching.arxiv import ArxivClient
from .fetching.fetcher import MetadataFetcher
from .fetching.pdf import PDFExtractor
from .grouping.service import GroupingService, LinkNotFoundError
from .storage.database import Database
from .storage.models import BatchItemResult, Bucket, IngestResult
from .tagging.base import BaseClassifier, Classified, ClassificationResult
from .tagging.bedrock import BedrockClassifier

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# A fetched description shorter than this is replaced by the classifier summary
MIN_DESCRIPTION_LENGTH = 20


def resolve_description(
    fetched: str | None, classification: ClassificationResult
) -> str | None:
    """Pick the description to store for a link."""
    if fetched and len(fetched) > MIN_DESCRIPTION_LENGTH:
        return fetched
    if isinstance(classification, Classified) and classification.summary:
        return classification.summary
    return fetched


def provenance_note(post_url: str, note: str | None) -> str:
    """Source note for links found inside a social post."""
    base = f"via tweet {post_url}"
    return f"{base}: {note}" if note else base


class IngestionPipeline:
    """Turn submitted URLs into stored, classified link records."""

    def __init__(
        self,
        config: Config,
        db: Database | None = None,
        fetcher: MetadataFetcher | None = None,
        social: SocialPostExtractor | None = None,
        classifier: BaseClassifier | None = None,
    ):
        self.config = config
        self.db = db or Database(config.database_path)
        self.fetcher = fetcher or MetadataFetcher(
            requests_per_second=config.rate_limit_per_second,
            timeout_seconds=config.fetch_timeout_seconds,
            max_redirects=config.max_redirects,
            max_content_length=config.max_content_length,
            arxiv_client=ArxivClient(timeout_seconds=config.arxiv_timeout_seconds),
            pdf_extractor=PDFExtractor(timeout_seconds=config.fetch_timeout_seconds),
        )
        self.social = social or SocialPostExtractor(
            embed_timeout_seconds=config.embed_timeout_seconds,
            redirect_timeout_seconds=config.redirect_timeout_seconds,
            max_redirects=config.max_redirects,
        )
        self.classifier = classifier or BedrockClassifier(
            model_id=config.bedrock_model,
            region=config.bedrock_region,
            timeout_seconds=config.llm_timeout_seconds,
        )

    async def process_one(self, url: str, note: str | None = None) -> IngestResult:
        """Ingest one submitted URL, expanding social posts into their links."""
        try:
            if self.social.is_social_post_url(url):
                logger.info(f"Detected social post, extracting links: {url}")
                expanded = await self.social.extract_links(url)

                if expanded:
                    logger.info(f"Found {len(expanded)} links in post, processing those instead")
                    source_note = provenance_note(url, note)
                    results = [await self._ingest(link, source_note) for link in expanded]

                    succeeded = [r for r in results if r.success]
                    if succeeded:
                        return IngestResult(
                            success=True,
                            link_id=succeeded[0].link_id,
                            expanded_urls=expanded,
                        )
                    logger.warning(f"No link from post {url} could be stored")

                logger.info(f"Saving post URL itself: {url}")

            return await self._ingest(url, note)
        except Exception as e:
            logger.error(f"Error processing URL {url}: {e}")
            return IngestResult(success=False, error=str(e))

    async def process_batch(
        self, urls: list[str], note: str | None = None
    ) -> list[BatchItemResult]:
        """Ingest URLs one at a time in submission order."""
        results = []
        for i, url in enumerate(urls):
            result = await self.process_one(url, note)
            results.append(BatchItemResult(url=url, result=result))

            status = "OK" if result.success else f"FAILED: {result.error}"
            logger.info(f"  [{i+1}/{len(urls)}] {url[:60]} -> {status}")
        return results

    async def _ingest(self, url: str, note: str | None) -> IngestResult:
        """Fetch, classify and store a single link."""
        try:
            metadata = await self.fetcher.fetch(url)
            classification = await self.classifier.classify(
                url, metadata.title, metadata.description, note
            )
            description = resolve_description(metadata.description, classification)

            link_id = self.db.store_if_absent(url, metadata.title, description, note)

            if isinstance(classification, Classified):
                self.db.apply_classification(
                    link_id,
                    classification.para,
                    classification.tags,
                    classification.subcategory,
                )
                logger.info(
                    f"Classified link {link_id}: {classification.para.bucket.value} > "
                    f"{classification.subcategory or 'Uncategorized'}"
                )

            return IngestResult(success=True, link_id=link_id)
        except Exception as e:
            logger.error(f"Error processing URL {url}: {e}")
            return IngestResult(success=False, error=str(e))


def _print_link(link) -> None:
    bucket = link.para.bucket.value if link.para else "Unclassified"
    click.echo(f"[{link.id}] {link.title or link.url}")
    click.echo(f"  {link.url}")
    click.echo(f"  {bucket} > {link.subcategory or '-'}")
    if link.description:
        click.echo(f"  {link.description[:100]}")
    click.echo()


@click.group()
def cli() -> None:
    """Parasight - Save links and sort them into Projects, Areas, Resources and Archive."""
    pass


@cli.command()
@click.argument("url")
@click.option("--note", "-n", default=None, help="Note to store with the link")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def ingest(url: str, note: str | None, config: str) -> None:
    """Ingest a single URL."""
    cfg = Config.from_yaml(config)
    pipeline = IngestionPipeline(cfg)
    result = asyncio.run(pipeline.process_one(url, note))

    if not result.success:
        click.echo(f"Failed: {result.error}", err=True)
        sys.exit(1)

    click.echo(f"Saved link {result.link_id}")
    for expanded in result.expanded_urls:
        click.echo(f"  from post: {expanded}")


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--note", "-n", default=None, help="Note to store with every link")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def batch(source, note: str | None, config: str) -> None:
    """Ingest every URL found in a pasted list (file or stdin)."""
    urls = PastedUrlParser().parse(source.read())
    if not urls:
        click.echo("No valid URLs found. Include full http(s) URLs.")
        return

    cfg = Config.from_yaml(config)
    pipeline = IngestionPipeline(cfg)
    results = asyncio.run(pipeline.process_batch(urls, note))

    succeeded = sum(1 for item in results if item.result.success)
    click.echo(f"Processed {succeeded}/{len(results)} URLs")
    for item in results:
        if not item.result.success:
            click.echo(f"  FAILED {item.url}: {item.result.error}")


@cli.command()
@click.argument("link_a", type=int)
@click.argument("link_b", type=int)
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def group(link_a: int, link_b: int, config: str) -> None:
    """Group LINK_A into LINK_B's group."""
    cfg = Config.from_yaml(config)
    pipeline = IngestionPipeline(cfg)
    service = GroupingService(pipeline.db, pipeline.classifier)

    try:
        group_name = asyncio.run(service.group(link_a, link_b))
    except LinkNotFoundError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    click.echo(f"Grouped {link_a} and {link_b} as {group_name!r}")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def dedup(config: str) -> None:
    """Remove duplicate links, keeping the earliest of each."""
    cfg = Config.from_yaml(config)
    db = Database(cfg.database_path)
    report = db.bulk_dedup()
    click.echo(f"Removed {report.removed} duplicates, {report.remaining} links remain")


@cli.command()
@click.argument("query")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--limit", "-n", default=20, help="Max results")
def search(query: str, config: str, limit: int) -> None:
    """Search links by title, description or URL."""
    cfg = Config.from_yaml(config)
    db = Database(cfg.database_path)
    results = db.search(query, limit=limit)

    if not results:
        click.echo("No results found.")
        return

    click.echo(f"Found {len(results)} results:\n")
    for link in results:
        _print_link(link)


@cli.command("by-bucket")
@click.argument("bucket", type=click.Choice([b.value for b in Bucket], case_sensitive=False))
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def by_bucket(bucket: str, config: str) -> None:
    """List links in a bucket."""
    cfg = Config.from_yaml(config)
    db = Database(cfg.database_path)
    results = db.list_by_bucket(Bucket(bucket.capitalize()))

    if not results:
        click.echo(f"No links in {bucket}")
        return

    for link in results:
        _print_link(link)


@cli.command("rename-group")
@click.argument("bucket", type=click.Choice([b.value for b in Bucket], case_sensitive=False))
@click.argument("old")
@click.argument("new")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def rename_group(bucket: str, old: str, new: str, config: str) -> None:
    """Rename a group within a bucket."""
    cfg = Config.from_yaml(config)
    db = Database(cfg.database_path)
    changed = db.rename_subcategory(Bucket(bucket.capitalize()), old, new)
    click.echo(f"Renamed {changed} links")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def tags(config: str) -> None:
    """List all tags with counts."""
    cfg = Config.from_yaml(config)
    db = Database(cfg.database_path)
    all_tags = db.get_all_tags()

    if not all_tags:
        click.echo("No tags found.")
        return

    click.echo("Tags:\n")
    for name, count in all_tags:
        click.echo(f"  {name}: {count} links")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def stats(config: str) -> None:
    """Show database statistics."""
    cfg = Config.from_yaml(config)
    db = Database(cfg.database_path)
    s = db.get_stats()

    click.echo("Database Statistics:")
    click.echo(f"  Total links:      {s['total']}")
    click.echo(f"  Added this week:  {s['added_this_week']}")
    for bucket, count in s["bucket_counts"].items():
        click.echo(f"  {bucket + ':':<17} {count}")
    if s["top_tags"]:
        click.echo("  Top tags:         " + ", ".join(name for name, _ in s["top_tags"]))


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--host", default="127.0.0.1", help="Host to bind")
@click.option("--port", "-p", default=5001, type=int, help="Port to bind")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
def web(config: str, host: str, port: int, debug: bool) -> None:
    """Start the share API."""
    from .web.app import create_app

    app = create_app(config)
    click.echo(f"Starting share API at http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
