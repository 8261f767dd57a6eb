# Import every entity so Base.metadata knows all tables.
from booth_ingest.entities.base import Base  # noqa: F401
from booth_ingest.entities.booth import Booth  # noqa: F401
from booth_ingest.entities.crawl_job import CrawlJob  # noqa: F401
from booth_ingest.entities.crawl_metric import CrawlMetric  # noqa: F401
from booth_ingest.entities.crawl_page import CrawlPage  # noqa: F401
from booth_ingest.entities.crawl_source import CrawlSource  # noqa: F401
