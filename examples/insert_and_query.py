import argparse
import logging

from sf_connector import ConfigStore, RecordService
from sf_connector.exceptions import ConfigError

LOGGER = logging.getLogger()
logging.basicConfig(level=logging.INFO)


def main():
    parser = argparse.ArgumentParser(description="Insert a Case and list recent ones")
    parser.add_argument("--config", default="salesforce_config.ini")
    parser.add_argument("--env", action="store_true", help="read SF_* variables instead")
    parser.add_argument("--subject", default="Test case from sf-connector")
    args = parser.parse_args()

    try:
        config = ConfigStore.from_env() if args.env else ConfigStore(args.config).load()
    except ConfigError as e:
        LOGGER.error("%s", e)
        raise SystemExit(1) from e

    with RecordService.from_config(config) as service:
        result = service.insert_record("Case", {"Subject": args.subject, "Priority": "Low"})
        LOGGER.info("Created Case %s", result.id)

        for case in service.query_records("SELECT Id, Subject FROM Case LIMIT 10"):
            print(case["Id"], case["Subject"], sep=" | ")


if __name__ == "__main__":
    main()
