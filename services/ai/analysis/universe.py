from typing import Dict, List

from schemas.market_analysis import StockInfo
from utils.common_helpers import normalize_ticker

# VN30 basket (HOSE). Default selection offered to the dashboard; tickers
# outside this list are still accepted for analysis.
VN30_UNIVERSE: List[StockInfo] = [
    StockInfo(ticker="ACB", name="Asia Commercial Bank", sector="Banking"),
    StockInfo(ticker="BCM", name="Becamex IDC", sector="Real Estate"),
    StockInfo(ticker="BID", name="BIDV", sector="Banking"),
    StockInfo(ticker="BVH", name="Bao Viet Holdings", sector="Insurance"),
    StockInfo(ticker="CTG", name="VietinBank", sector="Banking"),
    StockInfo(ticker="FPT", name="FPT Corporation", sector="Technology"),
    StockInfo(ticker="GAS", name="PetroVietnam Gas", sector="Oil & Gas"),
    StockInfo(ticker="GVR", name="Vietnam Rubber Group", sector="Materials"),
    StockInfo(ticker="HDB", name="HDBank", sector="Banking"),
    StockInfo(ticker="HPG", name="Hoa Phat Group", sector="Steel"),
    StockInfo(ticker="MBB", name="Military Commercial Bank", sector="Banking"),
    StockInfo(ticker="MSN", name="Masan Group", sector="Consumer"),
    StockInfo(ticker="MWG", name="Mobile World Investment", sector="Retail"),
    StockInfo(ticker="PLX", name="Petrolimex", sector="Oil & Gas"),
    StockInfo(ticker="POW", name="PetroVietnam Power", sector="Utilities"),
    StockInfo(ticker="SAB", name="Sabeco", sector="Beverages"),
    StockInfo(ticker="SHB", name="Saigon-Hanoi Bank", sector="Banking"),
    StockInfo(ticker="SSB", name="SeABank", sector="Banking"),
    StockInfo(ticker="SSI", name="SSI Securities", sector="Financial Services"),
    StockInfo(ticker="STB", name="Sacombank", sector="Banking"),
    StockInfo(ticker="TCB", name="Techcombank", sector="Banking"),
    StockInfo(ticker="TPB", name="TPBank", sector="Banking"),
    StockInfo(ticker="VCB", name="Vietcombank", sector="Banking"),
    StockInfo(ticker="VHM", name="Vinhomes", sector="Real Estate"),
    StockInfo(ticker="VIB", name="Vietnam International Bank", sector="Banking"),
    StockInfo(ticker="VIC", name="Vingroup", sector="Conglomerate"),
    StockInfo(ticker="VJC", name="Vietjet Aviation", sector="Aviation"),
    StockInfo(ticker="VNM", name="Vinamilk", sector="Consumer Staples"),
    StockInfo(ticker="VPB", name="VPBank", sector="Banking"),
    StockInfo(ticker="VRE", name="Vincom Retail", sector="Real Estate"),
]

_BY_TICKER: Dict[str, StockInfo] = {s.ticker: s for s in VN30_UNIVERSE}


def get_universe() -> List[StockInfo]:
    return list(VN30_UNIVERSE)


def is_known_ticker(ticker: str) -> bool:
    return normalize_ticker(ticker) in _BY_TICKER
