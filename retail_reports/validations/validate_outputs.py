from pandera.errors import SchemaErrors

from retail_reports.exceptions import InvalidReportError
from retail_reports.logger import setup_logger
from .output_schemas import REPORT_SCHEMAS

logger = setup_logger("reports.validation.output")


def validate_report(name, df):
    """
    Validate a report result before it is returned to the caller.

    Reports without a schema pass through unchanged. Unlike input tables,
    failing rows are never dropped: a partial report would be wrong.
    """
    schema = REPORT_SCHEMAS.get(name)
    if schema is None:
        return df

    logger.info(f"Starting output validation of '{name}' on {len(df)} rows")
    try:
        validated_df = schema.validate(df, lazy=True)
        logger.info(f"Output validation of '{name}' passed")
        return validated_df

    except SchemaErrors as err:
        failed = err.failure_cases
        logger.error(f"Output validation of '{name}' failed with {len(failed)} issues")
        logger.error(f"Failure summary:\n{failed.groupby(['column', 'check']).size()}")
        raise InvalidReportError(name, failed) from err
