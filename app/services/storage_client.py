import os
from typing import Dict, Optional

import requests


class StorageClient:
    """
    Client minimal pour le stockage objet (API Storage de type Supabase).
    upload() renvoie l'URL publique du fichier.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("SUPABASE_URL") or "").rstrip("/")
        self.service_key = service_key or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.bucket = bucket or os.getenv("STORAGE_BUCKET", "documents")

        if not self.base_url or not self.service_key:
            raise RuntimeError("SUPABASE_URL et SUPABASE_SERVICE_ROLE_KEY doivent être définis.")

    def _headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        h = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        if content_type:
            h["Content-Type"] = content_type
        return h

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    def upload(self, path: str, data: bytes, content_type: str = "application/pdf") -> str:
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"
        headers = self._headers(content_type)
        headers["x-upsert"] = "true"

        resp = requests.post(url, headers=headers, data=data, timeout=30)
        if resp.status_code >= 400:
            # tronque pour éviter d'exploser les logs
            body = (resp.text or "")[:1200]
            raise RuntimeError(f"Erreur stockage upload: {resp.status_code} {body}")
        return self.public_url(path)

    def remove(self, path: str) -> None:
        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        resp = requests.delete(url, headers=self._headers("application/json"), json={"prefixes": [path]}, timeout=30)
        if resp.status_code >= 400:
            body = (resp.text or "")[:1200]
            raise RuntimeError(f"Erreur stockage suppression: {resp.status_code} {body}")


def get_storage_client() -> StorageClient:
    return StorageClient()
