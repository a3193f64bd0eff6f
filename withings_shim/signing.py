from oauthlib.oauth1 import SIGNATURE_HMAC, SIGNATURE_TYPE_QUERY, Client


class OAuth1UrlSigner:
    """
    Signs Withings data URLs with OAuth 1.0a (HMAC-SHA1), placing the
    ``oauth_*`` parameters in the query string.
    """

    def __init__(self, client_key: str, client_secret: str) -> None:
        self.client_key = client_key
        self.client_secret = client_secret

    def sign(self, url: str, token: str, secret: str) -> str:
        client = Client(
            self.client_key,
            client_secret=self.client_secret,
            resource_owner_key=token,
            resource_owner_secret=secret,
            signature_method=SIGNATURE_HMAC,
            signature_type=SIGNATURE_TYPE_QUERY,
        )
        signed_url, _headers, _body = client.sign(url, http_method="GET")
        return signed_url
