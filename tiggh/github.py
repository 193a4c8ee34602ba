"""
GitHub REST client
Blocking API client used by the dashboard's background fetches
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests

from .exceptions import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RemoteFetchError,
)
from .models import Comment, Commit, Issue, PullRequest, RateLimit, Review

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = 'application/vnd.github+json'
DIFF_MEDIA_TYPE = 'application/vnd.github.v3.diff'
API_VERSION = '2022-11-28'
MAX_PER_PAGE = 100


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get('message'):
        return f"{response.status_code} {body['message']}"
    return f'{response.status_code} {response.reason or "error"}'


def translate_http_error(response: requests.Response) -> RemoteFetchError:
    """Map an unsuccessful response onto the tig-gh error family."""
    message = _error_message(response)
    status = response.status_code
    if status == 401:
        return AuthenticationError(message)
    if status == 404:
        return NotFoundError(message)
    if status in (403, 429) and response.headers.get('X-RateLimit-Remaining') == '0':
        return RateLimitError(message)
    return RemoteFetchError(message, status_code=status)


class GitHubClient:
    """
    GitHub REST API client

    Usage:
        client = GitHubClient(token='ghp_...')
        issues = client.list_issues('octocat', 'hello-world')
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_base_url: str = 'https://api.github.com/',
        timeout: float = 30,
        per_page: int = 50,
    ):
        self.api_base_url = api_base_url.rstrip('/')
        self.timeout = timeout
        self.per_page = max(1, min(per_page, MAX_PER_PAGE))
        self.session = requests.Session()
        self.session.headers['Accept'] = JSON_MEDIA_TYPE
        self.session.headers['X-GitHub-Api-Version'] = API_VERSION
        self.session.headers['User-Agent'] = 'tig-gh'

        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        accept: Optional[str] = None,
    ) -> requests.Response:
        """Make HTTP request to API, raising RemoteFetchError on failure"""
        url = path if path.startswith('http') else f'{self.api_base_url}{path}'
        headers = {'Accept': accept} if accept else None

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise RemoteFetchError(f'Request to {url} timed out after {self.timeout}s') from e
        except requests.ConnectionError as e:
            raise RemoteFetchError(f'Could not connect to {self.api_base_url}: {e}') from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            error = translate_http_error(response)
            logger.debug('%s %s failed: %s', method, url, error)
            raise error from e
        return response

    def _get_json(self, path: str, params: Optional[Dict] = None) -> Any:
        response = self._request('GET', path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteFetchError(f'Invalid JSON from {path}') from e

    def _paginate(self, path: str, params: Optional[Dict] = None) -> Iterator[Dict[str, Any]]:
        """Yield items across pages, following the Link header"""
        url: Optional[str] = path
        page_params = dict(params or {})
        page_params.setdefault('per_page', MAX_PER_PAGE)
        while url:
            response = self._request('GET', url, params=page_params)
            try:
                items = response.json()
            except ValueError as e:
                raise RemoteFetchError(f'Invalid JSON from {url}') from e
            yield from items or []
            url = (response.links.get('next') or {}).get('url')
            # the next link already carries the query string
            page_params = None

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    def list_issues(self, owner: str, repo: str, state: str = 'open') -> List[Issue]:
        """List issues, excluding pull requests (which the issues endpoint also returns)"""
        data = self._get_json(
            f'/repos/{owner}/{repo}/issues',
            params={'state': state, 'per_page': self.per_page, 'sort': 'updated'},
        )
        return [Issue.from_api(item) for item in data if 'pull_request' not in item]

    def list_issue_comments(self, owner: str, repo: str, number: int) -> List[Comment]:
        return [
            Comment.from_api(item)
            for item in self._paginate(f'/repos/{owner}/{repo}/issues/{number}/comments')
        ]

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    def list_pulls(
        self,
        owner: str,
        repo: str,
        state: str = 'open',
        sort: str = 'created',
        direction: str = 'desc',
        per_page: Optional[int] = None,
    ) -> List[PullRequest]:
        """List one page of pull requests"""
        data = self._get_json(
            f'/repos/{owner}/{repo}/pulls',
            params={
                'state': state,
                'sort': sort,
                'direction': direction,
                'per_page': per_page or self.per_page,
            },
        )
        return [PullRequest.from_api(item) for item in data]

    def iter_pulls(
        self,
        owner: str,
        repo: str,
        state: str = 'closed',
        sort: str = 'updated',
        direction: str = 'desc',
    ) -> Iterator[PullRequest]:
        """Iterate every pull request matching the filters, page by page"""
        params = {'state': state, 'sort': sort, 'direction': direction}
        for item in self._paginate(f'/repos/{owner}/{repo}/pulls', params=params):
            yield PullRequest.from_api(item)

    def list_reviews(self, owner: str, repo: str, number: int) -> List[Review]:
        return [
            Review.from_api(item)
            for item in self._paginate(f'/repos/{owner}/{repo}/pulls/{number}/reviews')
        ]

    def get_pull_diff(self, owner: str, repo: str, number: int) -> str:
        response = self._request(
            'GET', f'/repos/{owner}/{repo}/pulls/{number}', accept=DIFF_MEDIA_TYPE
        )
        return response.text

    # ------------------------------------------------------------------
    # Commits and repository
    # ------------------------------------------------------------------

    def list_commits(self, owner: str, repo: str, branch: Optional[str] = None) -> List[Commit]:
        params: Dict[str, Any] = {'per_page': self.per_page}
        if branch:
            params['sha'] = branch
        data = self._get_json(f'/repos/{owner}/{repo}/commits', params=params)
        return [Commit.from_api(item) for item in data]

    def get_commit_diff(self, owner: str, repo: str, sha: str) -> str:
        response = self._request(
            'GET', f'/repos/{owner}/{repo}/commits/{sha}', accept=DIFF_MEDIA_TYPE
        )
        return response.text

    def get_default_branch(self, owner: str, repo: str) -> str:
        data = self._get_json(f'/repos/{owner}/{repo}')
        return data.get('default_branch') or 'main'

    def get_rate_limit(self) -> RateLimit:
        return RateLimit.from_api(self._get_json('/rate_limit'))

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
