"""ComplyAdvantage Mesh: marketing site modal, new tab, then Auth0."""

from loginflow.sites.base import InterstitialConfig, LoginSurfaceConfig, SiteConfig

COMPLY_ADVANTAGE_HOME_URL = "https://complyadvantage.com/"
MESH_URL = "https://mesh.complyadvantage.com/"

COMPLY_ADVANTAGE_MESH = SiteConfig(
    id="comply-advantage-mesh",
    name="ComplyAdvantage Mesh",
    entry_url=COMPLY_ADVANTAGE_HOME_URL,
    success_url_pattern=r"mesh\.complyadvantage\.com/",
    navigation_markers=["#login-nav-button"],
    interstitial=InterstitialConfig(
        container="#notice",
        accept_selectors=[
            "#notice button[title='Accept all']",
            "#notice button[aria-label='Accept all']",
        ],
    ),
    login_surface=LoginSurfaceConfig(
        trigger_selectors=["#login-nav-button"],
        modal_selectors=["#mesh-li-modal-button", "#loginModal"],
        new_page_trigger_selectors=["#mesh-li-modal-button"],
        auth_page_url_pattern=r"(?i)complyadvantage|auth0|mesh",
        deep_link_url=MESH_URL,
        auth_url_pattern=r"auth0\.com/",
    ),
    organization_selectors=["#organizationName"],
    username_selectors=["#username"],
    username_submit_key="Enter",
    password_selectors=["#password"],
    rejection_markers=[
        "#error-element-password",
        "text=Wrong email or password",
    ],
    requires_organization=True,
)
