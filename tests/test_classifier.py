"""Tests for content classification."""

from src.collectors.base import Post
from src.formatter.classifier import ContentKind, classify


class TestClassify:
    """Tests for classify()."""

    def test_empty_post_is_link(self):
        """A post with no identifying fields still gets a kind."""
        assert classify(Post()) is ContentKind.LINK

    def test_self_hint(self, make_post):
        assert classify(make_post(is_self=False, post_hint="self")) is ContentKind.SELF

    def test_self_beats_poll(self, make_post):
        """Self is checked before poll."""
        post = make_post(is_self=True, poll_data={"options": []})
        assert classify(post) is ContentKind.SELF

    def test_image_hint_is_media(self, make_post):
        post = make_post(is_self=False, post_hint="image", domain="i.imgur.com")
        assert classify(post) is ContentKind.MEDIA

    def test_hosted_video_is_media(self, make_post):
        post = make_post(is_self=False, post_hint="hosted:video", domain="v.redd.it")
        assert classify(post) is ContentKind.MEDIA

    def test_youtube_rich_video_is_link(self, make_post):
        """YouTube embeds are links, not downloadable media."""
        post = make_post(is_self=False, post_hint="rich:video", domain="youtube.com")
        assert classify(post) is ContentKind.LINK

    def test_other_rich_video_is_media(self, make_post):
        post = make_post(is_self=False, post_hint="rich:video", domain="gfycat.com")
        assert classify(post) is ContentKind.MEDIA

    def test_imgur_link_is_media_unless_gallery(self, make_post):
        single = make_post(
            is_self=False, post_hint="link", domain="imgur.com",
            url_overridden_by_dest="https://imgur.com/abc.gifv",
        )
        album = make_post(
            is_self=False, post_hint="link", domain="imgur.com",
            url_overridden_by_dest="https://imgur.com/gallery/abc",
        )
        assert classify(single) is ContentKind.MEDIA
        assert classify(album) is ContentKind.LINK

    def test_reddit_cdn_without_hint_is_media(self, make_post):
        post = make_post(is_self=False, post_hint="", domain="i.redd.it")
        assert classify(post) is ContentKind.MEDIA

    def test_redgifs_link_is_media(self, make_post):
        post = make_post(is_self=False, post_hint="link", domain="redgifs.com")
        assert classify(post) is ContentKind.MEDIA

    def test_poll(self, make_post):
        post = make_post(is_self=False, post_hint="", domain="reddit.com", poll_data={"options": []})
        assert classify(post) is ContentKind.POLL

    def test_gallery_requires_reddit_domain(self, make_post):
        gallery = make_post(is_self=False, post_hint="", domain="reddit.com", is_gallery=True)
        elsewhere = make_post(is_self=False, post_hint="", domain="example.com", is_gallery=True)
        assert classify(gallery) is ContentKind.GALLERY
        assert classify(elsewhere) is ContentKind.LINK

    def test_plain_link(self, make_post):
        post = make_post(is_self=False, post_hint="link", domain="example.com")
        assert classify(post) is ContentKind.LINK
