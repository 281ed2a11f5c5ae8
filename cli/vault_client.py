"""HTTP client for communicating with the vault service."""

import mimetypes
import os
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import httpx

from common.constants import CHANNEL_TOKEN_HEADER
from common.logging_config import get_logger
from cli.config import Config
from cli.utils import READ_CHUNK_SIZE, ProgressFileWrapper, TransferProgress, format_file_size

logger = get_logger(__name__)

ERROR_MESSAGES = {
    'AUTH_FAILED': 'Channel credential rejected. Please run: channel <channel_id> <token>',
    'PERMISSION_DENIED': 'Access denied for this channel or file.',
    'NOT_FOUND': 'Not found: {detail}',
    'SCAN_WINDOW_EXCEEDED': '{detail}. Some parts are older than the recent message window.',
    'RATE_LIMITED': 'Rate limited by the remote service. Please wait and try again.',
    'REMOTE_ERROR': 'Remote service error: {detail}',
    'REMOTE_UNAVAILABLE': 'Remote service is currently unreachable. Please try again later.',
    'FILE_TOO_LARGE': 'File too large: {detail}',
    'INVALID_SETTINGS': 'Invalid settings: {detail}',
    'UPLOAD_INCOMPLETE': 'This file was never fully uploaded.',
}


def filename_from_disposition(header: Optional[str], fallback: str) -> str:
    """
    Extract the filename from a Content-Disposition header.

    Args:
        header: Header value, e.g. "attachment; filename*=UTF-8''report.pdf"
        fallback: Name used when the header carries none

    Returns:
        Bare file name (any directory part is dropped)
    """
    if not header:
        return fallback

    for part in header.split(';'):
        part = part.strip()
        if part.lower().startswith("filename*="):
            value = part.split("=", 1)[1]
            if "''" in value:
                value = value.split("''", 1)[1]
            return os.path.basename(unquote(value)) or fallback
        if part.lower().startswith("filename="):
            return os.path.basename(part.split("=", 1)[1].strip('"')) or fallback

    return fallback


class VaultClient:
    """HTTP client for the vault API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize vault client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout
        )
        self.request_id = None
        logger.info(f"Initialized VaultClient [base_url={config.base_url}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Parts are uploaded to the remote channel one after another with a
        pause between them, so large files need far more time than the
        transfer to the vault alone.

        Returns:
            Timeout in seconds (60s base + 2s per MiB)
        """
        size_mb = file_size / (1024 * 1024)
        return 60.0 + size_mb * 2.0

    def _resolve_output_path(self, output_path: Optional[str], filename: str) -> Path:
        """
        Decide where a downloaded file is written.

        Without an explicit path the file goes to the configured download
        directory; an existing directory receives the file under its own name.
        """
        if output_path:
            output_file = Path(output_path)
            if output_file.exists() and output_file.is_dir():
                output_file = output_file / filename
        else:
            output_file = self.config.download_dir / filename

        output_file.parent.mkdir(parents=True, exist_ok=True)
        return output_file

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Send a request, retrying vault-internal failures and network errors.

        Only 500 is retried. 502/503 describe the remote channel and were
        already retried by the vault, 4xx responses are returned as-is.

        Raises:
            ConnectionError: the vault could not be reached after all attempts
        """
        policy = self.config.retry_policy
        attempts = 1 + (policy.max_retries if max_retries is None else max_retries)

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = self.request_id
        tag = f"{method} {endpoint} [request_id={self.request_id}]"

        network_error: Optional[httpx.TransportError] = None
        for attempt in range(1, attempts + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                network_error = e
                reason = type(e).__name__
            else:
                logger.debug(f"{tag} -> {response.status_code}")
                if response.status_code != 500 or attempt == attempts:
                    return response
                reason = "status=500"

            if attempt < attempts:
                delay = policy.backoff ** (attempt - 1)
                logger.warning(f"{tag} attempt {attempt}/{attempts} failed ({reason}), retrying in {delay}s")
                time.sleep(delay)

        logger.error(f"{tag} gave up after {attempts} attempts: {network_error}")
        if isinstance(network_error, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to vault server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """Turn an error response into a message for the prompt."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        detail = str(body.get('detail') or response.text or response.reason_phrase or 'Unknown error')
        code = body.get('code')

        template = ERROR_MESSAGES.get(code)
        if template is not None:
            return template.format(detail=detail)
        if code:
            return f"{detail} (Code: {code})"
        return f"HTTP {response.status_code}: {detail}"

    def _channel(self) -> tuple[str, dict]:
        """
        Get the active channel id and the credential header.

        Raises:
            ValueError: If no channel is configured
        """
        channel_id, token = self.config.channel
        if not channel_id or not token:
            raise ValueError("No channel selected. Please run: channel <channel_id> <token>")
        return channel_id, {CHANNEL_TOKEN_HEADER: token}

    def set_channel(self, channel_id: str, token: str) -> str:
        self.config.set_channel(channel_id, token)
        logger.info(f"Active channel set to {channel_id}")
        return f"Active channel set to {channel_id}. Credential saved to config."

    def upload_files(self, file_paths: list[str]) -> str:
        """
        Upload files one by one to the active channel.

        Args:
            file_paths: Local paths of the files to upload

        Returns:
            Formatted result message with upload status for each file
        """
        try:
            channel_id, headers = self._channel()
        except ValueError as e:
            return f"Error: {e}"

        results = []
        for file_path in file_paths:
            if not os.path.exists(file_path):
                results.append(f"Error: File not found: {file_path}")
                continue
            if not os.path.isfile(file_path):
                results.append(f"Error: Not a file: {file_path}")
                continue

            file_size = os.path.getsize(file_path)
            filename = os.path.basename(file_path)
            mime_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
            upload_timeout = self._calculate_upload_timeout(file_size)

            try:
                with ProgressFileWrapper(file_path, file_size, filename) as wrapper:
                    response = self.session.post(
                        '/files',
                        files={'file': (filename, wrapper, mime_type)},
                        data={'channel_id': channel_id},
                        headers=headers,
                        timeout=upload_timeout
                    )

                if response.status_code == 201:
                    result = response.json()
                    results.append(
                        f"Uploaded: {result['filename']} "
                        f"(ID: {result['file_id']}, "
                        f"Size: {format_file_size(result['size'])}, "
                        f"Parts: {result['part_count']}, "
                        f"Share: {result['share_id'][:8]}...)"
                    )
                else:
                    results.append(f"Error uploading {file_path}: {self._format_error(response)}")

            except httpx.ConnectError:
                results.append(f"Error uploading {file_path}: Cannot connect to vault server")
            except httpx.TimeoutException:
                results.append(
                    f"Error uploading {file_path}: Upload timed out "
                    f"(file size: {format_file_size(file_size)}, timeout: {upload_timeout:.1f}s)"
                )
            except OSError as e:
                results.append(f"Error reading {file_path}: {e}")

        return '\n'.join(results) if results else "No files uploaded."

    def _save_stream(self, response: httpx.Response, fallback_name: str, output_path: Optional[str]) -> str:
        filename = filename_from_disposition(response.headers.get('Content-Disposition'), fallback_name)
        output_file = self._resolve_output_path(output_path, filename)

        progress = TransferProgress("Downloading", filename, int(response.headers.get('Content-Length', 0)))
        try:
            with open(output_file, 'wb') as f:
                for chunk in response.iter_bytes(chunk_size=READ_CHUNK_SIZE):
                    f.write(chunk)
                    progress.advance(len(chunk))
        finally:
            progress.close()

        strategy = response.headers.get('X-Download-Strategy')
        via = f" via {strategy}" if strategy else ""
        return f"Downloaded: {filename} ({format_file_size(progress.done)}){via}\nSaved to: {output_file.absolute()}"

    def _download(self, method: str, url: str, fallback_name: str, output_path: Optional[str], **kwargs) -> str:
        try:
            with self.session.stream(method, url, **kwargs) as response:
                if response.status_code == 200:
                    return self._save_stream(response, fallback_name, output_path)
                response.read()
                return f"Error: {self._format_error(response)}"

        except httpx.ConnectError:
            return "Error: Cannot connect to vault server. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Server may be overloaded."
        except IOError as e:
            return f"Error writing file: {e}"

    def download(self, file_id: int, output_path: Optional[str] = None) -> str:
        """
        Download a stored file by id with progress feedback.

        Args:
            file_id: Vault file id
            output_path: Optional output file or directory

        Returns:
            Success message with download details
        """
        try:
            _, headers = self._channel()
        except ValueError as e:
            return f"Error: {e}"

        return self._download('GET', f'/files/{file_id}/download', f"file-{file_id}", output_path, headers=headers)

    def fetch_by_name(self, filename: str, chunked: bool, output_path: Optional[str] = None) -> str:
        """
        Download a file from the active channel by name alone.

        Args:
            filename: Attachment name, or base name of its parts when chunked
            chunked: Look for '{filename}.partN' attachments
            output_path: Optional output file or directory
        """
        try:
            channel_id, headers = self._channel()
        except ValueError as e:
            return f"Error: {e}"

        payload = {'channel_id': channel_id, 'filename': filename, 'chunked': chunked}
        return self._download('POST', '/files/download-by-name', filename, output_path, json=payload, headers=headers)

    def list_files(self, limit: int = 100) -> str:
        """
        List files recorded for the active channel.
        """
        try:
            channel_id, _ = self._channel()
        except ValueError as e:
            return f"Error: {e}"

        try:
            response = self._request_with_retry('GET', f'/channels/{channel_id}/files', params={'limit': limit})

            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"

            files = response.json()['files']
            if not files:
                return f"No files recorded for channel {channel_id}"

            output = [f"Found {len(files)} file(s):\n"]
            for file_meta in files:
                flags = [file_meta['kind']]
                if file_meta['is_public']:
                    flags.append('public')
                if not file_meta['upload_complete']:
                    flags.append('incomplete')
                output.append(
                    f"  - [{file_meta['file_id']}] {file_meta['filename']} ({', '.join(flags)})\n"
                    f"    Size: {format_file_size(file_meta['size'])}\n"
                    f"    Created: {file_meta['created_at']}"
                )
            return '\n'.join(output)

        except ConnectionError as e:
            return f"Error: {e}"

    def list_remote(self, limit: Optional[int] = None) -> str:
        """
        List attachments in the active channel's recent messages.
        """
        try:
            channel_id, headers = self._channel()
        except ValueError as e:
            return f"Error: {e}"

        params = {'limit': limit} if limit else {}
        try:
            response = self._request_with_retry(
                'GET', f'/channels/{channel_id}/attachments', params=params, headers=headers
            )

            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"

            attachments = response.json()['attachments']
            if not attachments:
                return "No attachments in recent messages."

            output = [f"{len(attachments)} attachment(s), newest first:\n"]
            for item in attachments:
                part = f" (part {item['part_number']} of {item['part_of']})" if item.get('part_of') else ""
                output.append(f"  - {item['filename']}{part} {format_file_size(item['size'])}")
            return '\n'.join(output)

        except ConnectionError as e:
            return f"Error: {e}"

    def share(self, file_id: int, is_public: bool) -> str:
        try:
            response = self._request_with_retry(
                'PATCH', f'/files/{file_id}/visibility', json={'is_public': is_public}
            )
            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"

            data = response.json()
            if data['is_public']:
                return f"File {file_id} is public.\nShare link: {self.config.base_url}/shared/{data['share_id']}"
            return f"File {file_id} is private."

        except ConnectionError as e:
            return f"Error: {e}"

    def delete(self, file_id: int) -> str:
        try:
            response = self._request_with_retry('DELETE', f'/files/{file_id}')
            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"
            return f"Deleted file {file_id} from the local records. Remote messages are untouched."

        except ConnectionError as e:
            return f"Error: {e}"

    def batch_upload(self, file_paths: list[str]) -> str:
        """
        Submit several files as one background batch.
        """
        try:
            channel_id, headers = self._channel()
        except ValueError as e:
            return f"Error: {e}"

        missing = [p for p in file_paths if not os.path.isfile(p)]
        if missing:
            return f"Error: File not found: {', '.join(missing)}"

        handles = [open(path, 'rb') for path in file_paths]
        try:
            files = [
                ('files', (os.path.basename(path), handle, mimetypes.guess_type(path)[0] or 'application/octet-stream'))
                for path, handle in zip(file_paths, handles)
            ]
            total_size = sum(os.path.getsize(p) for p in file_paths)
            response = self.session.post(
                '/batches/upload',
                files=files,
                data={'channel_id': channel_id},
                headers=headers,
                timeout=self._calculate_upload_timeout(total_size)
            )
        except httpx.ConnectError:
            return "Error: Cannot connect to vault server. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Server may be overloaded."
        finally:
            for handle in handles:
                handle.close()

        if response.status_code != 202:
            return f"Error: {self._format_error(response)}"

        batch = response.json()
        return (
            f"Batch {batch['batch_id']} accepted with {batch['total_files']} file(s).\n"
            f"Check progress with: batch-status {batch['batch_id']}"
        )

    def batch_status(self, batch_id: Optional[int] = None) -> str:
        try:
            if batch_id is None:
                response = self._request_with_retry('GET', '/batches')
            else:
                response = self._request_with_retry('GET', f'/batches/{batch_id}')

            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"

            data = response.json()
            batches = data['batches'] if batch_id is None else [data]
            if not batches:
                return "No batches yet."

            output = []
            for batch in batches:
                output.append(
                    f"Batch {batch['batch_id']} ({batch['operation_type']}): {batch['status']} "
                    f"{batch['completed_files']}/{batch['total_files']} completed"
                )
                for item in batch.get('items', []):
                    error = f" - {item['error']}" if item.get('error') else ""
                    output.append(f"  - {item['filename']}: {item['status']}{error}")
            return '\n'.join(output)

        except ConnectionError as e:
            return f"Error: {e}"

    def settings(self, changes: Optional[dict] = None) -> str:
        """
        Show the transfer settings, or apply changes and show the new version.
        """
        try:
            if changes:
                response = self._request_with_retry('PATCH', '/settings', json=changes)
            else:
                response = self._request_with_retry('GET', '/settings')

            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"

            data = response.json()
            lines = [f"Transfer settings (version {data['version']}):"]
            for key, value in data.items():
                if key == 'version':
                    continue
                if key.endswith('_bytes'):
                    value = f"{value} ({format_file_size(value)})"
                lines.append(f"  {key}: {value}")
            return '\n'.join(lines)

        except ConnectionError as e:
            return f"Error: {e}"

    def history(self, limit: int = 20) -> str:
        try:
            response = self._request_with_retry('GET', '/history', params={'limit': limit})
            if response.status_code != 200:
                return f"Error: {self._format_error(response)}"

            entries = response.json()['entries']
            if not entries:
                return "No operations recorded."

            output = []
            for entry in entries:
                details = entry['details']
                kind = details['operation_type']
                if kind in ('upload', 'download'):
                    summary = f"{details['filename']} ({format_file_size(details['size'])})"
                else:
                    summary = f"{details['completed_files']}/{details['total_files']} files, {details['status']}"
                output.append(f"  {entry['timestamp']}  {kind:<15} {summary}")
            return '\n'.join(output)

        except ConnectionError as e:
            return f"Error: {e}"

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
