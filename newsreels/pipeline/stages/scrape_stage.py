"""
Scrape Stage - Pulls new articles from the news source into the item store.
"""

from datetime import date
from typing import List

from ..base import PipelineStage, StageOutcome, StageRunner
from ..external import ExternalCaller
from ...core import PipelineError
from ...content.fingerprint import normalize_url
from ...services.interfaces import Scraper
from ...state.models import Item, RawArticle, Stage, utcnow


class ScrapeStage(PipelineStage):
    """
    Create one Item per new article.

    Dependencies:
    - Scraper: article source
    - ExternalCaller: scrape rate limit + retry

    Dedup is the store's job: create_if_absent on the normalized link. A
    duplicate is reported as a skipped outcome, not an error.
    """

    def __init__(
        self,
        scraper: Scraper,
        caller: ExternalCaller,
        max_articles: int = 5,
        body_max_chars: int = 5000
    ):
        super().__init__("Scrape", batch_size=max_articles)
        self.scraper = scraper
        self.caller = caller
        self.body_max_chars = body_max_chars

    async def run(self, runner: StageRunner) -> List[StageOutcome]:
        self.logger.info(f"Starting stage: {self.name}")

        result = await self.caller.call(self.scraper.scrape_news)
        if result.is_err():
            raise PipelineError(f"Scraping failed: {result.unwrap_err()}")

        articles = result.unwrap() or []
        if not articles:
            self.logger.warning("No articles found. The source structure may have changed.")
            return []

        batch = articles[:self.batch_size]
        self.logger.info(f"Found {len(articles)} articles. Processing top {len(batch)}...")

        outcomes = []
        for article in batch:
            outcomes.append(await self._ingest(runner, article))

        created = sum(1 for o in outcomes if o.success)
        self.logger.info(f"✅ Stored {created} new articles")
        return outcomes

    async def _ingest(self, runner: StageRunner, article: RawArticle) -> StageOutcome:
        try:
            link = normalize_url(article.link)
        except ValueError as e:
            self.logger.warning(f"Dropping article with bad link: {e}")
            return StageOutcome(item_id=article.link or "", success=False, error=str(e))

        item = Item(
            source_link=link,
            title=(article.title or "").strip(),
            body=(article.content or "").strip()[:self.body_max_chars],
            posted_date=article.posted_date or date.today().isoformat(),
            source=article.source,
        )
        flag = item.flag(Stage.SCRAPED)
        flag.done = True
        flag.updated_at = utcnow()

        created = await runner.store.create_if_absent(item)
        if not created.created:
            self.logger.info(f"⏭️ Already stored, skipping: {link}")
            return StageOutcome(item_id=created.id, success=False, error="duplicate", skipped=True)

        self.logger.info(f"Stored new article {created.id}: {item.title[:60]}")
        return StageOutcome(item_id=created.id, success=True)
