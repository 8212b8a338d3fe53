from pandera.errors import SchemaErrors

from retail_reports.exceptions import InvalidTableError, ReferentialIntegrityError
from retail_reports.logger import setup_logger
from .input_schemas import FOREIGN_KEYS, TABLE_SCHEMAS

logger = setup_logger("reports.validation.input")


def validate_table(name, df, drop_invalid=False):
    """
    Validate one table against its schema.

    Returns (validated_df, invalid_count). By default a schema failure
    raises InvalidTableError; with drop_invalid=True the failing rows are
    dropped instead and the remainder is re-validated.
    """
    schema = TABLE_SCHEMAS.get(name)
    if schema is None:
        logger.info(f"No schema for table '{name}', skipping validation")
        return df, 0

    logger.info(f"Starting {name} validation on {len(df)} rows")
    try:
        validated_df = schema.validate(df, lazy=True)
        logger.info(f"{name} validation passed")
        return validated_df, 0

    except SchemaErrors as err:
        failed = err.failure_cases
        invalid_count = len(failed)
        logger.warning(f"{name} validation failed: {invalid_count} issues")
        logger.warning(f"Errors summary:\n{failed.groupby(['column', 'check']).size()}")

        if not drop_invalid:
            raise InvalidTableError(name, failed) from err

        # Drop invalid rows by filtering out failed indices
        failed_indices = failed["index"].dropna().unique()
        if len(failed_indices) > 0:
            clean_df = df.drop(index=failed_indices)
        else:
            clean_df = df.copy()

        try:
            clean_df = schema.validate(clean_df)
            logger.info(f"Cleaned {name}: {len(clean_df)} rows remaining")
        except SchemaErrors as retry_err:
            logger.error(f"Could not clean all invalid rows of {name}")
            raise InvalidTableError(name, retry_err.failure_cases) from retry_err

        return clean_df.reset_index(drop=True), invalid_count


def check_referential_integrity(tables):
    """
    Raise ReferentialIntegrityError for the first foreign key with values
    missing from the referenced table. Null foreign keys are not checked.
    """
    for table, column, referenced, referenced_column in FOREIGN_KEYS:
        if table not in tables or referenced not in tables:
            continue

        values = tables[table][column].dropna()
        known = set(tables[referenced][referenced_column])
        missing = sorted(set(values) - known, key=str)
        if missing:
            logger.error(
                f"{len(missing)} unresolved keys in {table}.{column} -> "
                f"{referenced}.{referenced_column}"
            )
            raise ReferentialIntegrityError(table, column, referenced, missing)

    logger.info("Referential integrity check passed")


def warn_claims_before_sale(tables):
    """Log claims dated before their sale; returns how many there are."""
    claims = tables["warranty"][["claim_id", "sale_id", "claim_date"]]
    sales = tables["sales"][["sale_id", "sale_date"]]
    merged = claims.merge(sales, on="sale_id", how="inner")
    early = merged[merged["claim_date"] < merged["sale_date"]]

    if len(early) > 0:
        logger.warning(
            f"{len(early)} warranty claims are dated before their sale "
            f"(e.g. claim {early['claim_id'].iloc[0]})"
        )
    return len(early)


def validate_tables(tables, drop_invalid=False):
    """Validate every table, then check foreign keys across them."""
    validated = {}
    total_invalid = 0
    for name, df in tables.items():
        validated[name], invalid_count = validate_table(name, df, drop_invalid=drop_invalid)
        total_invalid += invalid_count

    if total_invalid > 0:
        logger.warning(f"Dropped rows for {total_invalid} validation issues across all tables")

    check_referential_integrity(validated)
    warn_claims_before_sale(validated)
    return validated
