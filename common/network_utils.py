# common/network_utils.py
# -*- coding: utf-8 -*-
"""
HTTP helpers for fetching release metadata and downloading release assets.

Every request carries a timeout and is attempted exactly once. Failures are
raised as the caller-supplied BootstrapError subclass so the driver can turn
them into an exit code.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

import requests

from node_installer.errors import BootstrapError, DownloadError

module_logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 8192
USER_AGENT = "kube-node-setup"


def _describe_request_error(err: requests.exceptions.RequestException) -> str:
    if isinstance(err, requests.exceptions.HTTPError):
        status_code = (
            err.response.status_code if err.response is not None else "Unknown"
        )
        return f"HTTP error occurred: {err} - Status code: {status_code}"
    if isinstance(err, requests.exceptions.ConnectionError):
        return f"Connection error occurred: {err}"
    if isinstance(err, requests.exceptions.Timeout):
        return f"Timeout error occurred: {err}"
    return f"An unexpected error occurred during the request: {err}"


def fetch_text(
    url: str,
    timeout: float,
    error_cls: Type[BootstrapError] = DownloadError,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    GET `url` and return the stripped response body.

    Raises:
        error_cls: On any request failure or an empty body.
    """
    logger_to_use = current_logger if current_logger else module_logger
    logger_to_use.debug(f"Fetching {url}")
    try:
        response = requests.get(
            url, timeout=timeout, headers={"User-Agent": USER_AGENT}
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as req_err:
        message = _describe_request_error(req_err)
        logger_to_use.error(message)
        raise error_cls(f"Could not fetch {url}: {message}") from req_err

    body = response.text.strip()
    if not body:
        raise error_cls(f"Empty response received from {url}")
    return body


def fetch_json(
    url: str,
    timeout: float,
    error_cls: Type[BootstrapError] = DownloadError,
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    GET `url` and decode the JSON object it returns.

    Raises:
        error_cls: On any request failure or a body that is not a JSON object.
    """
    logger_to_use = current_logger if current_logger else module_logger
    logger_to_use.debug(f"Fetching JSON from {url}")
    try:
        response = requests.get(
            url,
            timeout=timeout,
            headers={
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
        )
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as req_err:
        message = _describe_request_error(req_err)
        logger_to_use.error(message)
        raise error_cls(f"Could not fetch {url}: {message}") from req_err
    except ValueError as json_err:
        raise error_cls(f"Invalid JSON received from {url}: {json_err}") from json_err

    if not isinstance(payload, dict):
        raise error_cls(f"Unexpected JSON payload received from {url}")
    return payload


def download_file(
    url: str,
    download_to_path: Union[str, Path],
    timeout: float,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Stream `url` into `download_to_path`.

    Returns:
        The path the file was written to.

    Raises:
        DownloadError: On any request or file I/O failure.
    """
    logger_to_use = current_logger if current_logger else module_logger
    download_path = Path(download_to_path)
    logger_to_use.info(f"Downloading {url} to {download_path}")

    try:
        download_path.parent.mkdir(parents=True, exist_ok=True)
        with requests.get(
            url,
            stream=True,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        ) as response:
            response.raise_for_status()
            with open(download_path, "wb") as f:
                for chunk in response.iter_content(
                    chunk_size=DOWNLOAD_CHUNK_SIZE
                ):
                    if chunk:
                        f.write(chunk)
    except requests.exceptions.RequestException as req_err:
        message = _describe_request_error(req_err)
        logger_to_use.error(message)
        raise DownloadError(f"Could not download {url}: {message}") from req_err
    except IOError as io_err:
        logger_to_use.error(f"File I/O error when saving download: {io_err}")
        raise DownloadError(
            f"Could not save {url} to {download_path}: {io_err}"
        ) from io_err

    logger_to_use.debug(f"Downloaded {url} to {download_path}")
    return download_path
