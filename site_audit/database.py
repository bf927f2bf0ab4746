# database.py
import logging
from typing import Dict, Any

from neo4j import AsyncGraphDatabase
from neo4j.exceptions import Neo4jError, DriverError

from .models import AuditReport, InteractionResult, PageRecord

logger = logging.getLogger(__name__)


async def init_database(driver, clear: bool = False):
    async with driver.session() as session:
        if clear:
            await session.run("MATCH (n) WHERE n:Page OR n:Interaction DETACH DELETE n")
            logger.info("Previous audit graph deleted")
        await session.run("CREATE INDEX page_url IF NOT EXISTS FOR (p:Page) ON (p.url)")


async def save_page(driver, page: PageRecord):
    async with driver.session() as session:
        await session.run(
            """
            MERGE (p:Page {url: $url})
            SET p.depth = $depth, p.http_status = $http_status,
                p.title = $title, p.load_time_ms = $load_time_ms
            """,
            url=page.url, depth=page.depth, http_status=page.http_status,
            title=page.title, load_time_ms=page.load_time_ms,
        )
        if page.discovered_from:
            await session.run(
                """
                MATCH (a:Page {url: $from_url})
                MATCH (b:Page {url: $to_url})
                MERGE (a)-[:LINKS_TO]->(b)
                """,
                from_url=page.discovered_from, to_url=page.url,
            )


def interaction_properties(result: InteractionResult) -> Dict[str, Any]:
    return {
        'viewport': result.viewport,
        'index': result.index,
        'selector': result.element.selector,
        'text': result.element.text,
        'tag_name': result.element.tag_name,
        'href': result.element.href or '',
        'outcome': result.outcome.value,
        'post_url': result.post_url,
        'http_status': result.http_status,
        'notes': result.notes,
    }


async def save_interaction(driver, result: InteractionResult):
    async with driver.session() as session:
        await session.run(
            """
            MATCH (p:Page {url: $page_url})
            MERGE (i:Interaction {page_url: $page_url, viewport: $viewport, index: $index})
            SET i += $props
            MERGE (p)-[:HAS_INTERACTION]->(i)
            """,
            page_url=result.page_url, viewport=result.viewport, index=result.index,
            props=interaction_properties(result),
        )


async def export_report(config: Dict[str, Any], report: AuditReport) -> bool:
    """Push the crawl graph and interaction outcomes to Neo4j. Returns False if the export failed."""
    driver = AsyncGraphDatabase.driver(
        config['neo4j_uri'],
        auth=(config['neo4j_user'], config['neo4j_password'])
    )
    try:
        await init_database(driver, clear=config.get('clear_db', False))
        # Pages are in BFS order, so a page's parent is always saved first
        for page in report.pages:
            await save_page(driver, page)
        for result in report.results:
            await save_interaction(driver, result)
        logger.info(f"Exported {len(report.pages)} pages and {len(report.results)} interactions to Neo4j")
        return True
    except (Neo4jError, DriverError, OSError) as e:
        logger.error(f"Neo4j export failed: {e}")
        return False
    finally:
        await driver.close()
