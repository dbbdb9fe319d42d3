"""Contract search and definitions."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor


class SymbolSearchParams(ActionParams):
    symbol: str = Field(min_length=1)
    sec_type: str = "STK"
    name: bool = False


class ConidParams(ActionParams):
    conid: int = Field(gt=0)


class ContractRulesParams(ConidParams):
    is_buy: bool = True


class SymbolParams(ActionParams):
    symbol: str = Field(min_length=1)


class BondFilterOptions(ActionParams):
    symbol: str = ""
    issuer_id: str = ""


class BondFiltersParams(ActionParams):
    additional_options: BondFilterOptions = Field(default_factory=BondFilterOptions)


@operation("contracts", "searchContracts", SymbolSearchParams)
def search_contracts(params: SymbolSearchParams, account_id: str) -> RequestDescriptor:
    """Search contracts by symbol or company name."""
    return RequestDescriptor(
        method="GET",
        endpoint="/iserver/secdef/search",
        query={
            "symbol": params.symbol,
            "secType": params.sec_type,
            "name": str(params.name).lower(),
        },
    )


@operation("contracts", "getContractDetails", ConidParams)
def get_contract_details(params: ConidParams, account_id: str) -> RequestDescriptor:
    """Get contract details."""
    return RequestDescriptor(method="GET", endpoint=f"/iserver/contract/{params.conid}/info")


@operation("contracts", "getContractInfo", ConidParams)
def get_contract_info(params: ConidParams, account_id: str) -> RequestDescriptor:
    """Get contract info together with trading rules."""
    return RequestDescriptor(
        method="GET", endpoint=f"/iserver/contract/{params.conid}/info-and-rules"
    )


@operation("contracts", "getContractRules", ContractRulesParams)
def get_contract_rules(params: ContractRulesParams, account_id: str) -> RequestDescriptor:
    """Get trading rules for one side of a contract."""
    return RequestDescriptor(
        method="GET",
        endpoint=f"/iserver/contract/{params.conid}/rules",
        query={"isBuy": str(params.is_buy).lower()},
    )


@operation("contracts", "getSecDefByConid", ConidParams)
def get_secdef_by_conid(params: ConidParams, account_id: str) -> RequestDescriptor:
    """Get the security definition of a contract."""
    return RequestDescriptor(
        method="POST", endpoint="/trsrv/secdef", body={"conids": [params.conid]}
    )


@operation("contracts", "getFuturesBySymbol", SymbolParams)
def get_futures_by_symbol(params: SymbolParams, account_id: str) -> RequestDescriptor:
    """List non-expired futures for a symbol."""
    return RequestDescriptor(
        method="GET", endpoint="/trsrv/futures", query={"symbols": params.symbol}
    )


@operation("contracts", "getStocksBySymbol", SymbolParams)
def get_stocks_by_symbol(params: SymbolParams, account_id: str) -> RequestDescriptor:
    """List stock contracts for a symbol."""
    return RequestDescriptor(
        method="GET", endpoint="/trsrv/stocks", query={"symbols": params.symbol}
    )


@operation("contracts", "searchBondFilters", BondFiltersParams)
def search_bond_filters(params: BondFiltersParams, account_id: str) -> RequestDescriptor:
    """Get the filters available for a bond issuer."""
    options = params.additional_options
    query: dict[str, Any] = {}
    if options.symbol:
        query["symbol"] = options.symbol
    if options.issuer_id:
        query["issuerId"] = options.issuer_id
    return RequestDescriptor(
        method="GET", endpoint="/iserver/secdef/bond-filters", query=query
    )


@operation("contracts", "getIBAlgoParams", ConidParams)
def get_ib_algo_params(params: ConidParams, account_id: str) -> RequestDescriptor:
    """List IB algos available for a contract."""
    return RequestDescriptor(method="GET", endpoint=f"/iserver/contract/{params.conid}/algos")
