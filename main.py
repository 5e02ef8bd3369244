import argparse
import getpass
import logging
import sys

from duo_gateway.client import DuoClient
from duo_gateway.config import DEFAULT_CONFIG_PATH, DEFAULT_PROFILE, load_account
from duo_gateway.errors import DuoGatewayError
from duo_gateway.models import LoginDetails


def _build_parser():
    parser = argparse.ArgumentParser(description="Log in through a Duo Access Gateway and print the SAML assertion.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--profile", default=DEFAULT_PROFILE,
                        help=f"Config profile to use (default: {DEFAULT_PROFILE})")
    parser.add_argument("--username", help="Gateway username (overrides config)")
    parser.add_argument("--url", help="Gateway base URL (overrides config)")
    parser.add_argument("--debug", action="store_true", help="Log every step and HTTP request")
    return parser


def main(argv=None):
    args = _build_parser().parse_args(argv)

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s",
                        level=logging.DEBUG if args.debug else logging.INFO)
    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    try:
        account = load_account(args.config, args.profile)
    except DuoGatewayError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1

    url = args.url or account.url
    username = args.username or account.username or input("Username: ").strip()
    password = getpass.getpass("Password: ")

    with DuoClient(account) as client:
        try:
            assertion = client.authenticate(LoginDetails(url=url.rstrip("/"), username=username, password=password))
        except DuoGatewayError as err:
            print(f"Authentication failed: {err}", file=sys.stderr)
            return 1

    print(assertion)
    return 0


# Example usage
if __name__ == "__main__":
    sys.exit(main())
