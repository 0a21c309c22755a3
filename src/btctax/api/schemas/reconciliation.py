from btctax.api.schemas.tax import TransactionsRequest


class ReconcileRequest(TransactionsRequest):
    pass
