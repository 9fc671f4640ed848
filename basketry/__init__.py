from ._validation import StructuralError
from .aggregate import aggregate, count, top
from .benchmark import REPORTS, run_benchmarks, run_report
from .config import AnalysisConfig
from .model import Invoice, LineItem, Pair
from .network import similarity_network
from .pairs import pairs
from .ranking import rank_within
from .recommend import recommend_for_customer
from .reports import copurchase_pairs, country_bestsellers, top_customers_for_product, top_products, top_spenders
from .sequential import next_purchases, window_end
from .store import TransactionStore
from .transactions import from_arrow, from_pandas, from_polars, from_transactions

__all__ = [
    "Invoice",
    "LineItem",
    "Pair",
    "AnalysisConfig",
    "StructuralError",
    "TransactionStore",
    "from_transactions",
    "from_pandas",
    "from_polars",
    "from_arrow",
    "pairs",
    "aggregate",
    "count",
    "top",
    "rank_within",
    "copurchase_pairs",
    "top_products",
    "top_customers_for_product",
    "country_bestsellers",
    "recommend_for_customer",
    "similarity_network",
    "next_purchases",
    "window_end",
    "top_spenders",
    "REPORTS",
    "run_report",
    "run_benchmarks",
]
