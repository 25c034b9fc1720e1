import unittest
from datetime import datetime

from botocore.exceptions import ClientError, EndpointConnectionError

from s3_gallery.models import FileObject
from s3_gallery.services import DeleteError, ListingFetchError, S3GalleryService


class FakeS3Client:
    def __init__(self, object_responses=None, delete_errors=None):
        self.object_responses = iter(object_responses or [])
        self.list_objects_kwargs = []
        self.delete_object_calls = []
        self.delete_object_errors = delete_errors or {}
        self.presigned_url_calls = []

    def list_objects_v2(self, **kwargs):
        self.list_objects_kwargs.append(kwargs)
        response = next(self.object_responses)
        if isinstance(response, Exception):
            raise response
        return response

    def delete_object(self, **kwargs):
        bucket = kwargs["Bucket"]
        key = kwargs["Key"]
        self.delete_object_calls.append((bucket, key))
        error = self.delete_object_errors.get((bucket, key))
        if isinstance(error, Exception):
            raise error

    def generate_presigned_url(self, client_method, Params=None, ExpiresIn=3600):
        self.presigned_url_calls.append(
            {"method": client_method, "params": Params or {}, "expires_in": ExpiresIn}
        )
        return "signed-url"


CONNECTION = {
    "endpoint_url": "https://example.com",
    "access_key": "access",
    "secret_key": "secret",
}


class S3GalleryServiceTests(unittest.TestCase):
    def _service(self, fake_client):
        self.factory_calls = []

        def factory(*args, **kwargs):
            self.factory_calls.append((args, kwargs))
            return fake_client

        return S3GalleryService(client_factory=factory)

    def test_list_page_normalizes_response(self):
        modified = datetime(2024, 1, 1, 12, 0, 0)
        fake_client = FakeS3Client(
            [
                {
                    "Contents": [
                        {"Key": "a.png", "Size": 10, "LastModified": modified, "ETag": '"e1"'},
                        {"Key": "b.txt"},
                    ],
                    "IsTruncated": True,
                    "NextContinuationToken": "token-1",
                }
            ]
        )
        service = self._service(fake_client)

        page = service.list_page(bucket_name="gallery", page_size=20, **CONNECTION)

        self.assertEqual(
            [
                FileObject(key="a.png", size=10, last_modified=modified, etag='"e1"'),
                FileObject(key="b.txt"),
            ],
            page.objects,
        )
        self.assertTrue(page.is_truncated)
        self.assertEqual("token-1", page.next_token)
        self.assertTrue(page.has_more)
        self.assertEqual([{"Bucket": "gallery", "MaxKeys": 20}], fake_client.list_objects_kwargs)
        self.assertEqual("s3", self.factory_calls[0][0][0])
        self.assertEqual("https://example.com", self.factory_calls[0][1]["endpoint_url"])

    def test_list_page_passes_cursor(self):
        fake_client = FakeS3Client([{"Contents": [], "IsTruncated": False}])
        service = self._service(fake_client)

        page = service.list_page(bucket_name="gallery", page_size=5, cursor="token-1", **CONNECTION)

        self.assertEqual([], page.objects)
        self.assertFalse(page.has_more)
        self.assertIsNone(page.next_token)
        self.assertEqual("token-1", fake_client.list_objects_kwargs[0]["ContinuationToken"])

    def test_list_page_skips_entries_without_key(self):
        fake_client = FakeS3Client([{"Contents": [{"Size": 3}, {"Key": "", "Size": 1}, {"Key": "c.gif"}]}])
        service = self._service(fake_client)

        page = service.list_page(bucket_name="gallery", page_size=5, **CONNECTION)

        self.assertEqual(["c.gif"], [obj.key for obj in page.objects])

    def test_truncated_page_without_token_has_no_more(self):
        fake_client = FakeS3Client([{"Contents": [{"Key": "a.png"}], "IsTruncated": True}])
        service = self._service(fake_client)

        page = service.list_page(bucket_name="gallery", page_size=5, **CONNECTION)

        self.assertTrue(page.is_truncated)
        self.assertFalse(page.has_more)

    def test_token_on_final_page_is_not_followed(self):
        fake_client = FakeS3Client(
            [{"Contents": [], "IsTruncated": False, "NextContinuationToken": "stray"}]
        )
        service = self._service(fake_client)

        page = service.list_page(bucket_name="gallery", page_size=5, **CONNECTION)

        self.assertFalse(page.has_more)

    def test_list_page_wraps_client_errors(self):
        list_error = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Denied"}},
            "ListObjectsV2",
        )
        fake_client = FakeS3Client([list_error])
        service = self._service(fake_client)

        with self.assertRaises(ListingFetchError) as ctx:
            service.list_page(bucket_name="gallery", page_size=5, **CONNECTION)

        self.assertEqual(str(list_error), str(ctx.exception))
        self.assertIs(list_error, ctx.exception.__cause__)

    def test_list_page_wraps_transport_errors(self):
        fake_client = FakeS3Client([EndpointConnectionError(endpoint_url="https://example.com")])
        service = self._service(fake_client)

        with self.assertRaises(ListingFetchError):
            service.list_page(bucket_name="gallery", page_size=5, **CONNECTION)

    def test_list_page_rejects_non_positive_page_size(self):
        fake_client = FakeS3Client()
        service = self._service(fake_client)

        with self.assertRaises(ValueError):
            service.list_page(bucket_name="gallery", page_size=0, **CONNECTION)
        self.assertEqual([], fake_client.list_objects_kwargs)

    def test_delete_object_calls_backend(self):
        fake_client = FakeS3Client()
        service = self._service(fake_client)

        service.delete_object(bucket_name="gallery", key="a.png", **CONNECTION)

        self.assertEqual([("gallery", "a.png")], fake_client.delete_object_calls)

    def test_delete_missing_object_is_not_an_error(self):
        missing = ClientError({"Error": {"Code": "NoSuchKey", "Message": "Missing"}}, "DeleteObject")
        fake_client = FakeS3Client(delete_errors={("gallery", "a.png"): missing})
        service = self._service(fake_client)

        service.delete_object(bucket_name="gallery", key="a.png", **CONNECTION)

        self.assertEqual([("gallery", "a.png")], fake_client.delete_object_calls)

    def test_delete_object_wraps_errors(self):
        denied = ClientError({"Error": {"Code": "AccessDenied", "Message": "Denied"}}, "DeleteObject")
        fake_client = FakeS3Client(delete_errors={("gallery", "a.png"): denied})
        service = self._service(fake_client)

        with self.assertRaises(DeleteError) as ctx:
            service.delete_object(bucket_name="gallery", key="a.png", **CONNECTION)

        self.assertIs(denied, ctx.exception.__cause__)

    def test_generate_presigned_url_for_get(self):
        fake_client = FakeS3Client()
        service = self._service(fake_client)

        url = service.generate_presigned_url(bucket_name="gallery", key="a.png", expires_in=60, **CONNECTION)

        self.assertEqual("signed-url", url)
        self.assertEqual(
            [{"method": "get_object", "params": {"Bucket": "gallery", "Key": "a.png"}, "expires_in": 60}],
            fake_client.presigned_url_calls,
        )

    def test_generate_presigned_url_validates_expiry(self):
        service = self._service(FakeS3Client())

        with self.assertRaises(ValueError):
            service.generate_presigned_url(bucket_name="gallery", key="a.png", expires_in=0, **CONNECTION)


if __name__ == "__main__":
    unittest.main()
