TEST_API_KEY = "test-anon-key"
TEST_CLIENT_EMAIL = "uploader@wedding-test.iam.gserviceaccount.com"
